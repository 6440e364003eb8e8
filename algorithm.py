"""
algorithm - 全局自适应 Gauss-Kronrod 积分主算法

基于 QUADPACK QAG (Piessens et al., 1983) 及 GSL gsl_integration_qag 的设计。

在有限区间 [a, b] 上积分一元实函数 f:
1. 用选定规则在整个区间上求值一次，作为初始估计
2. 反复二分误差最大的子区间，在两半上重新求值，更新全局积分与误差
3. 全局误差满足容差、二分次数用尽或检测到舍入误差 / 奇点时停止

数值上的失败不抛异常，而是以 ErrorKind 标记在 IntegrationResult 中返回。
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable

import numpy as np

from .core.gauss_kronrod import RuleEstimate, RuleKey, get_rule
from .core.workspace import IntervalWorkspace
from .utils.constants import DBL_EPSILON

logger = logging.getLogger(__name__)


class ErrorKind(Enum):
    """积分失败的类别。"""

    BAD_TOLERANCE = "BadTolerance"
    ROUNDOFF_LIMITED = "RoundoffLimited"
    SINGULARITY_LIKELY = "SingularityLikely"
    ITERATION_LIMIT_EXCEEDED = "IterationLimitExceeded"
    FAILED = "Failed"


_MESSAGES = {
    ErrorKind.BAD_TOLERANCE: "tolerance cannot be achieved with given epsabs and epsrel",
    ErrorKind.ROUNDOFF_LIMITED: "roundoff error prevents tolerance from being achieved",
    ErrorKind.SINGULARITY_LIKELY: "bad integrand behavior found in the integration interval",
    ErrorKind.ITERATION_LIMIT_EXCEEDED: "maximum number of subdivisions reached",
    ErrorKind.FAILED: "could not integrate function",
}


class IntegrationError(Exception):
    """积分未达到容差时由 IntegrationResult.unwrap() 抛出。"""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(f"{kind.value}: {message}")
        self.kind = kind
        self.message = message


@dataclass(frozen=True)
class IntegrationResult:
    """
    一次积分调用的结果，构造后不再修改。

    成功时 value 与 abserr 同时给出，kind 为 None；
    失败时 value 与 abserr 均为 None，kind 标记失败类别。

    Attributes:
        value: 积分估计
        abserr: 绝对误差上界
        kind: 失败类别
        message: 失败说明
        intervals: 结束时的子区间数
        neval: 被积函数求值次数
        maximum_level: 最大二分深度
    """

    value: float | None
    abserr: float | None
    kind: ErrorKind | None = None
    message: str = ""
    intervals: int = 0
    neval: int = 0
    maximum_level: int = 0

    @property
    def ok(self) -> bool:
        return self.kind is None

    def unwrap(self) -> tuple[float, float]:
        """返回 (value, abserr)，失败时抛出 IntegrationError。"""
        if self.kind is not None:
            raise IntegrationError(self.kind, self.message)
        return self.value, self.abserr

    @classmethod
    def success(cls, value: float, abserr: float, **diagnostics) -> "IntegrationResult":
        return cls(value, abserr, None, "", **diagnostics)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str | None = None, **diagnostics) -> "IntegrationResult":
        return cls(None, None, kind, message or _MESSAGES[kind], **diagnostics)


class _CountingIntegrand:
    """记录被积函数求值次数。"""

    def __init__(self, f: Callable[[float], float]):
        self.f = f
        self.neval = 0

    def __call__(self, x: float) -> float:
        self.neval += 1
        return self.f(x)


def _tolerance_unreachable(epsabs: float, epsrel: float) -> bool:
    return epsabs <= 0 and (epsrel < 50 * DBL_EPSILON or epsrel < 0.5e-28)


def integrate(
    f: Callable[[float], float],
    rule: Callable[[Callable[[float], float], float, float], RuleEstimate],
    a: float,
    b: float,
    epsabs: float,
    epsrel: float,
    limit: int,
) -> IntegrationResult:
    """
    全局自适应积分 ∫_a^b f(x) dx。

    目标: |I - value| <= max(epsabs, epsrel * |I|)。

    Args:
        f: 被积函数，纯函数
        rule: 规则求值器，rule(f, a, b) -> (result, resabs, resasc, abserr)
        a: 积分下限，允许 a > b
        b: 积分上限
        epsabs: 绝对误差容差
        epsrel: 相对误差容差
        limit: 最大子区间数

    Returns:
        IntegrationResult
    """
    if not callable(f):
        raise TypeError("Integrand must be callable")
    if not callable(rule):
        raise TypeError("Rule must be callable")
    if limit < 1:
        raise ValueError(f"limit must be at least 1, got {limit}")
    if not (math.isfinite(a) and math.isfinite(b)):
        raise ValueError(f"Integration bounds must be finite, got [{a}, {b}]")

    if _tolerance_unreachable(epsabs, epsrel):
        logger.info("Rejected tolerances epsabs=%g, epsrel=%g", epsabs, epsrel)
        return IntegrationResult.failure(ErrorKind.BAD_TOLERANCE)

    f = _CountingIntegrand(f)
    workspace = IntervalWorkspace(limit)

    # 整个区间上的初始估计
    result0, resabs0, resasc0, abserr0 = rule(f, a, b)
    workspace.init(a, b, result0, abserr0)

    tolerance = max(epsabs, epsrel * abs(result0))
    round_off = 50 * DBL_EPSILON * resabs0

    logger.debug(
        "Initial estimate on [%g, %g]: result=%.16g, abserr=%.3g, tolerance=%.3g",
        a, b, result0, abserr0, tolerance,
    )

    if abserr0 <= round_off and abserr0 > tolerance:
        return _finish(
            IntegrationResult.failure(
                ErrorKind.ROUNDOFF_LIMITED,
                "cannot reach tolerance because of roundoff error on first attempt",
                intervals=1,
                neval=f.neval,
            )
        )
    elif (abserr0 <= tolerance and abserr0 != resasc0) or abserr0 == 0.0:
        return IntegrationResult.success(result0, abserr0, intervals=1, neval=f.neval)
    elif limit == 1:
        return _finish(
            IntegrationResult.failure(
                ErrorKind.ITERATION_LIMIT_EXCEEDED,
                "a maximum of one iteration was insufficient",
                intervals=1,
                neval=f.neval,
            )
        )

    area = result0
    errsum = abserr0
    iteration = 1
    roundoff_type1 = 0
    roundoff_type2 = 0
    error_kind: ErrorKind | None = None

    while True:
        # 二分误差最大的子区间
        a_i, b_i, r_i, e_i = workspace.retrieve()

        a1 = a_i
        b1 = 0.5 * (a_i + b_i)
        a2 = b1
        b2 = b_i

        area1, _, resasc1, error1 = rule(f, a1, b1)
        area2, _, resasc2, error2 = rule(f, a2, b2)

        area12 = area1 + area2
        error12 = error1 + error2

        errsum += error12 - e_i
        area += area12 - r_i

        if resasc1 != error1 and resasc2 != error2:
            delta = r_i - area12

            if abs(delta) <= 1.0e-5 * abs(area12) and error12 >= 0.99 * e_i:
                roundoff_type1 += 1
            if iteration >= 10 and error12 > e_i:
                roundoff_type2 += 1

        tolerance = max(epsabs, epsrel * abs(area))

        if errsum > tolerance:
            if roundoff_type1 >= 6 or roundoff_type2 >= 20:
                error_kind = ErrorKind.ROUNDOFF_LIMITED

            # 积分区间内某点附近被积函数性态不好
            if workspace.subinterval_check(a1, a2, b2):
                error_kind = ErrorKind.SINGULARITY_LIKELY

            if error_kind is not None:
                logger.debug(
                    "Flagged %s at [%.17g, %.17g] (roundoff counters %d, %d)",
                    error_kind.value, a1, b2, roundoff_type1, roundoff_type2,
                )

        workspace.update(a1, b1, area1, error1, a2, b2, area2, error2)

        iteration += 1

        logger.debug(
            "Iteration %d: bisected [%.17g, %.17g], area=%.16g, errsum=%.3g, tolerance=%.3g",
            iteration, a_i, b_i, area, errsum, tolerance,
        )

        if not (iteration < limit and error_kind is None and errsum > tolerance):
            break

    diagnostics = dict(intervals=workspace.size, neval=f.neval, maximum_level=workspace.maximum_level)
    result = workspace.sum_results()

    if errsum <= tolerance:
        return IntegrationResult.success(result, errsum, **diagnostics)
    elif error_kind is not None:
        return _finish(IntegrationResult.failure(error_kind, **diagnostics))
    elif iteration == limit:
        return _finish(IntegrationResult.failure(ErrorKind.ITERATION_LIMIT_EXCEEDED, **diagnostics))
    else:
        return _finish(IntegrationResult.failure(ErrorKind.FAILED, **diagnostics))


def _finish(outcome: IntegrationResult) -> IntegrationResult:
    logger.info(
        "Integration failed (%s): %s after %d subintervals",
        outcome.kind.value, outcome.message, outcome.intervals,
    )
    return outcome


def qag(
    f: Callable[[float], float],
    a: float,
    b: float,
    epsabs: float = 1.49e-8,
    epsrel: float = 1.49e-8,
    limit: int = 50,
    key: int = RuleKey.GAUSS21,
) -> IntegrationResult:
    """
    按规则键选择 Gauss-Kronrod 规则的自适应积分。

    Args:
        f: 被积函数
        a: 积分下限
        b: 积分上限
        epsabs: 绝对误差容差
        epsrel: 相对误差容差
        limit: 最大子区间数
        key: 规则键 1-6 (15/21/31/41/51/61 点)，超出范围时取最近的合法值

    Returns:
        IntegrationResult
    """
    return integrate(f, get_rule(key), a, b, epsabs, epsrel, limit)


@dataclass
class QAGSettings:
    """自适应积分参数，默认值与 scipy.integrate.quad 一致。"""

    epsabs: float = 1.49e-8  # 绝对误差容差
    epsrel: float = 1.49e-8  # 相对误差容差
    limit: int = 50  # 最大子区间数
    key: int = RuleKey.GAUSS21  # 规则键

    def integrate(self, f: Callable[[float], float], a: float, b: float) -> IntegrationResult:
        """用当前参数积分 f 在 [a, b] 上。"""
        return qag(f, a, b, self.epsabs, self.epsrel, self.limit, self.key)


if __name__ == "__main__":
    from adaptive_quadrature.datasets import reference_integrands

    print("=== 自适应积分测试 ===")

    for ref in reference_integrands():
        outcome = qag(ref.f, ref.a, ref.b, epsabs=0.0, epsrel=1e-10, limit=100, key=RuleKey.GAUSS21)
        if outcome.ok:
            print(
                f"{ref.name:>16}: {outcome.value:.15f} ± {outcome.abserr:.2e}, "
                f"实际误差 {abs(outcome.value - ref.exact):.2e}, 子区间 {outcome.intervals}"
            )
        else:
            print(f"{ref.name:>16}: {outcome.kind.value} ({outcome.message})")

    # 积分方向反转
    outcome = qag(np.sin, np.pi, 0.0)
    print(f"\n∫sin(x) dx from π to 0 = {outcome.value:.15f}")
