"""
datasets - 参考被积函数

包含:
- reference_integrands: 带解析解的标准测试被积函数
"""

from .reference_integrands import ReferenceIntegrand, get_reference, reference_integrands

__all__ = [
    "ReferenceIntegrand",
    "get_reference",
    "reference_integrands",
]
