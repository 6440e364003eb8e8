"""
constants - 机器精度常量

IEEE 754 双精度浮点数的基本常量，供积分核心与数值微分共用。
数值取自 numpy.finfo，与 C 语言 <float.h> 中的 DBL_* 宏一致。
"""

import numpy as np

_FINFO = np.finfo(np.float64)

DBL_EPSILON = float(_FINFO.eps)  # 2.220446049250313e-16
DBL_MIN = float(_FINFO.tiny)  # 最小正规格化数 2.2250738585072014e-308
DBL_MAX = float(_FINFO.max)
