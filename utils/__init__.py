"""
utils - 工具函数模块

包含:
- constants: 机器精度常量
- numeric: 整数幂等数值辅助函数
- differentiation: 有限差分数值微分
"""

from .constants import DBL_EPSILON, DBL_MAX, DBL_MIN
from .differentiation import deriv_backward, deriv_central, deriv_forward
from .numeric import coerce_double, pow_int

__all__ = [
    "DBL_EPSILON",
    "DBL_MAX",
    "DBL_MIN",
    "deriv_backward",
    "deriv_central",
    "deriv_forward",
    "coerce_double",
    "pow_int",
]
