"""
adaptive_quadrature - 全局自适应 Gauss-Kronrod 数值积分库

基于 QUADPACK: Piessens, de Doncker-Kapenga, Überhuber, Kahaner (1983)
"QUADPACK: A Subroutine Package for Automatic Integration"

该库实现 QAG 算法：在有限区间上反复二分误差最大的子区间，
用固定阶 Gauss-Kronrod 规则估计积分与误差，直到满足给定的绝对 / 相对容差。
"""

from .algorithm import ErrorKind, IntegrationError, IntegrationResult, QAGSettings, integrate, qag
from .core.gauss_kronrod import RuleKey, rule15, rule21, rule31, rule41, rule51, rule61

__version__ = "0.1.0"
__all__ = [
    "ErrorKind",
    "IntegrationError",
    "IntegrationResult",
    "QAGSettings",
    "integrate",
    "qag",
    "RuleKey",
    "rule15",
    "rule21",
    "rule31",
    "rule41",
    "rule51",
    "rule61",
]
