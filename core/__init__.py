"""
core - 核心算法模块

包含:
- kronrod_tables: Gauss-Kronrod 节点与权重表
- gauss_kronrod: 固定阶规则求值与误差校正
- workspace: 子区间工作区与误差降序维护
"""

from .gauss_kronrod import (
    GaussKronrodRule,
    RuleEstimate,
    RuleKey,
    get_rule,
    qk,
    rescale_error,
    rule15,
    rule21,
    rule31,
    rule41,
    rule51,
    rule61,
)
from .workspace import IntervalWorkspace, Subinterval, subinterval_too_small

__all__ = [
    "GaussKronrodRule",
    "RuleEstimate",
    "RuleKey",
    "get_rule",
    "qk",
    "rescale_error",
    "rule15",
    "rule21",
    "rule31",
    "rule41",
    "rule51",
    "rule61",
    "IntervalWorkspace",
    "Subinterval",
    "subinterval_too_small",
]
