"""
gauss_kronrod - 固定阶 Gauss-Kronrod 求积规则

在子区间 [a, b] 上计算一组 Gauss-Kronrod 对，得到:
1. Kronrod 积分估计 result
2. |f| 的积分估计 resabs，衡量被积函数量级
3. |f - mean| 的积分估计 resasc，衡量函数局部变化
4. 经 rescale_error 校正后的误差估计 abserr

内嵌的 Gauss 规则复用奇数下标的 Kronrod 节点，因此每个节点只求值一次。
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, NamedTuple, Sequence

import numpy as np

from ..utils.constants import DBL_EPSILON, DBL_MIN
from .kronrod_tables import TABLES


class RuleEstimate(NamedTuple):
    """单次规则求值的结果，顺序为 (result, resabs, resasc, abserr)。"""

    result: float
    resabs: float
    resasc: float
    abserr: float


def rescale_error(err: float, result_abs: float, result_asc: float) -> float:
    """
    误差校正。

    Kronrod 与 Gauss 估计之差通常严重高估误差，按 QUADPACK 的经验公式:
        err <- resasc * min(1, (200 * |err| / resasc)^1.5)
    并保证误差不小于该量级下不可避免的舍入误差 50 * eps * resabs。

    Args:
        err: 原始误差 (Kronrod - Gauss) * half_length
        result_abs: |f| 积分估计
        result_asc: |f - mean| 积分估计

    Returns:
        校正后的非负误差估计
    """
    err = abs(err)

    if result_asc != 0 and err != 0:
        scale = (200 * err / result_asc) ** 1.5

        if scale < 1:
            err = result_asc * scale
        else:
            err = result_asc

    if result_abs > DBL_MIN / (50 * DBL_EPSILON):
        min_err = 50 * DBL_EPSILON * result_abs

        if min_err > err:
            err = min_err

    return err


def qk(
    xgk: Sequence[float],
    wg: Sequence[float],
    wgk: Sequence[float],
    f: Callable[[float], float],
    a: float,
    b: float,
) -> RuleEstimate:
    """
    通用 Gauss-Kronrod 求值。

    节点映射: x = center ± half_length * xgk[j]。
    奇数下标 j 的节点对同时累加到 Gauss 和与 Kronrod 和，偶数下标只进 Kronrod 和。

    Args:
        xgk: (n,) 非负 Kronrod 节点，最后一项为 0
        wg: (n//2,) Gauss 权重
        wgk: (n,) Kronrod 权重
        f: 被积函数
        a: 积分下限
        b: 积分上限

    Returns:
        RuleEstimate(result, resabs, resasc, abserr)
    """
    n = len(xgk)
    fv1 = [0.0] * n
    fv2 = [0.0] * n

    center = 0.5 * (a + b)
    half_length = 0.5 * (b - a)
    abs_half_length = abs(half_length)
    f_center = float(f(center))

    result_gauss = 0.0
    result_kronrod = f_center * wgk[n - 1]

    result_abs = abs(result_kronrod)

    if n % 2 == 0:
        result_gauss = f_center * wg[n // 2 - 1]

    for j in range((n - 1) // 2):
        jtw = j * 2 + 1
        abscissa = half_length * xgk[jtw]
        fval1 = float(f(center - abscissa))
        fval2 = float(f(center + abscissa))
        fsum = fval1 + fval2
        fv1[jtw] = fval1
        fv2[jtw] = fval2
        result_gauss += wg[j] * fsum
        result_kronrod += wgk[jtw] * fsum
        result_abs += wgk[jtw] * (abs(fval1) + abs(fval2))

    for j in range(n // 2):
        jtwm1 = j * 2
        abscissa = half_length * xgk[jtwm1]
        fval1 = float(f(center - abscissa))
        fval2 = float(f(center + abscissa))
        fv1[jtwm1] = fval1
        fv2[jtwm1] = fval2
        result_kronrod += wgk[jtwm1] * (fval1 + fval2)
        result_abs += wgk[jtwm1] * (abs(fval1) + abs(fval2))

    mean = result_kronrod * 0.5

    result_asc = wgk[n - 1] * abs(f_center - mean)

    for j in range(n - 1):
        result_asc += wgk[j] * (abs(fv1[j] - mean) + abs(fv2[j] - mean))

    # 按区间半长缩放
    err = (result_kronrod - result_gauss) * half_length

    result_kronrod *= half_length
    result_abs *= abs_half_length
    result_asc *= abs_half_length

    return RuleEstimate(result_kronrod, result_abs, result_asc, rescale_error(err, result_abs, result_asc))


@dataclass(frozen=True)
class GaussKronrodRule:
    """
    固定阶 Gauss-Kronrod 规则。

    可直接作为 integrate() 的 rule 参数: rule(f, a, b) -> RuleEstimate。

    Attributes:
        name: 规则名，如 "qk21"
        kronrod_points: Kronrod 点数 (2n - 1)
        gauss_points: 内嵌 Gauss 点数
        xgk, wg, wgk: 节点与权重表
    """

    name: str
    kronrod_points: int
    gauss_points: int
    xgk: tuple[float, ...] = field(repr=False)
    wg: tuple[float, ...] = field(repr=False)
    wgk: tuple[float, ...] = field(repr=False)

    @classmethod
    def from_tables(cls, xgk: np.ndarray, wg: np.ndarray, wgk: np.ndarray) -> "GaussKronrodRule":
        """由节点权重表构造规则，校验三张表长度一致。"""
        n = len(xgk)
        if len(wgk) != n or len(wg) != n // 2:
            raise ValueError(
                f"Inconsistent rule tables: len(xgk)={n}, len(wgk)={len(wgk)}, len(wg)={len(wg)}"
            )
        kronrod_points = 2 * n - 1
        return cls(
            name=f"qk{kronrod_points}",
            kronrod_points=kronrod_points,
            gauss_points=(kronrod_points - 1) // 2,
            xgk=tuple(float(x) for x in xgk),
            wg=tuple(float(w) for w in wg),
            wgk=tuple(float(w) for w in wgk),
        )

    def __call__(self, f: Callable[[float], float], a: float, b: float) -> RuleEstimate:
        return qk(self.xgk, self.wg, self.wgk, f, a, b)


rule15 = GaussKronrodRule.from_tables(*TABLES[15])
rule21 = GaussKronrodRule.from_tables(*TABLES[21])
rule31 = GaussKronrodRule.from_tables(*TABLES[31])
rule41 = GaussKronrodRule.from_tables(*TABLES[41])
rule51 = GaussKronrodRule.from_tables(*TABLES[51])
rule61 = GaussKronrodRule.from_tables(*TABLES[61])


class RuleKey(IntEnum):
    """规则选择键，与 GSL 的 GSL_INTEG_GAUSS15 ... GSL_INTEG_GAUSS61 对应。"""

    GAUSS15 = 1
    GAUSS21 = 2
    GAUSS31 = 3
    GAUSS41 = 4
    GAUSS51 = 5
    GAUSS61 = 6


_RULES_BY_KEY = {
    RuleKey.GAUSS15: rule15,
    RuleKey.GAUSS21: rule21,
    RuleKey.GAUSS31: rule31,
    RuleKey.GAUSS41: rule41,
    RuleKey.GAUSS51: rule51,
    RuleKey.GAUSS61: rule61,
}


def get_rule(key: int) -> GaussKronrodRule:
    """按键取规则，超出范围的整数夹到最近的合法键。"""
    key = min(max(int(key), RuleKey.GAUSS15), RuleKey.GAUSS61)
    return _RULES_BY_KEY[RuleKey(key)]


if __name__ == "__main__":
    print("=== Gauss-Kronrod 规则测试 ===")

    # ∫x^2 dx from 0 to 1 = 1/3
    for rule in _RULES_BY_KEY.values():
        est = rule(lambda x: x * x, 0.0, 1.0)
        print(f"{rule.name}: result={est.result:.16f}, abserr={est.abserr:.2e}")

    # ∫sin(x) dx from 0 to π = 2
    est = rule21(np.sin, 0.0, np.pi)
    print(f"\nqk21 ∫sin(x) dx from 0 to π:")
    print(f"  计算值: {est.result:.16f}")
    print(f"  误差估计: {est.abserr:.2e}")
    print(f"  resabs={est.resabs:.6f}, resasc={est.resasc:.6f}")
