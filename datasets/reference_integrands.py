"""
reference_integrands - 带解析解的参考被积函数

数据来源:
QUADPACK / GSL 积分测试集中的标准被积函数，以及若干初等函数。
精确值由闭式解或 scipy.special 中的特殊函数给出。

数据说明:
- 光滑函数: 多项式、正弦、指数、有理函数，固定阶规则即可达到机器精度
- 端点奇异: x^α log(1/x)、log(1/x)^(α-1)、1/√x，需要在端点附近反复二分
- 振荡函数: cos(2^α sin x)，精确值为 π J0(2^α)
"""

from dataclasses import dataclass
from typing import Callable

import numpy as np
from scipy import special

# 测试集参数
ALPHA_LOG_WEIGHT = 2.6  # x^α log(1/x)
ALPHA_LOG_POWER = 1.5  # log(1/x)^(α-1)
ALPHA_OSCILLATORY = 1.3  # cos(2^α sin x)


@dataclass(frozen=True)
class ReferenceIntegrand:
    """带精确积分值的被积函数"""

    name: str
    f: Callable[[float], float]
    a: float
    b: float
    exact: float
    note: str = ""


def _x_squared(x):
    return x * x


def _inverse_quadratic(x):
    return 1.0 / (1.0 + x * x)


def _log_weighted_power(x):
    return x**ALPHA_LOG_WEIGHT * np.log(1.0 / x)


def _log_power(x):
    return np.log(1.0 / x) ** (ALPHA_LOG_POWER - 1.0)


def _oscillatory(x):
    return np.cos(2.0**ALPHA_OSCILLATORY * np.sin(x))


def _inverse_sqrt(x):
    return 1.0 / np.sqrt(x)


_REFERENCES = (
    ReferenceIntegrand("x^2", _x_squared, 0.0, 1.0, 1.0 / 3.0, "二次多项式"),
    ReferenceIntegrand("sin", np.sin, 0.0, np.pi, 2.0, "半个周期"),
    ReferenceIntegrand("exp", np.exp, 0.0, 1.0, np.e - 1.0, "指数函数"),
    ReferenceIntegrand("1/(1+x^2)", _inverse_quadratic, 0.0, 1.0, np.pi / 4.0, "arctan 的导数"),
    ReferenceIntegrand(
        "x^a*log(1/x)",
        _log_weighted_power,
        0.0,
        1.0,
        1.0 / (ALPHA_LOG_WEIGHT + 1.0) ** 2,
        "左端点导数奇异",
    ),
    ReferenceIntegrand(
        "log(1/x)^(a-1)",
        _log_power,
        0.0,
        1.0,
        float(special.gamma(ALPHA_LOG_POWER)),
        "左端点对数奇异，精确值 Γ(α)",
    ),
    ReferenceIntegrand(
        "cos(2^a*sin(x))",
        _oscillatory,
        0.0,
        np.pi,
        float(np.pi * special.j0(2.0**ALPHA_OSCILLATORY)),
        "振荡函数，精确值 π J0(2^α)",
    ),
    ReferenceIntegrand("1/sqrt(x)", _inverse_sqrt, 0.0, 1.0, 2.0, "左端点可积奇点"),
)


def reference_integrands() -> list[ReferenceIntegrand]:
    """
    获取全部参考被积函数。

    Returns:
        ReferenceIntegrand 列表
    """
    return list(_REFERENCES)


def get_reference(name: str) -> ReferenceIntegrand:
    """按名称获取参考被积函数。"""
    for ref in _REFERENCES:
        if ref.name == name:
            return ref
    raise ValueError(f"Unknown reference integrand '{name}'")


if __name__ == "__main__":
    print("=== 参考被积函数 ===")
    for ref in reference_integrands():
        print(f"{ref.name:>16} on [{ref.a:.4f}, {ref.b:.4f}] = {ref.exact:.16f}  ({ref.note})")
