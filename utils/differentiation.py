"""
differentiation - 数值微分工具函数

有限差分求一阶导数，并给出误差估计。步长 h 先按调用者给定值计算一次，
若截断误差占主导，则按舍入误差与截断误差的标度关系求出最优步长，再算一次。

- 中心差分: 5 点公式 (x±h, x±h/2)，误差由 5 点与 3 点结果之差估计，O(h²)
- 前向差分: 4 点公式 (x+h/4, x+h/2, x+3h/4, x+h)，误差由 4 点与 2 点结果之差估计，O(h)
- 后向差分: 以 -h 调用前向差分
"""

from typing import Callable

from .constants import DBL_EPSILON


def _central_step(f: Callable[[float], float], x: float, h: float) -> tuple[float, float, float]:
    """单步中心差分，返回 (导数, 舍入误差, 截断误差)。中心点不参与计算。"""
    fm1 = f(x - h)
    fp1 = f(x + h)

    fmh = f(x - h / 2)
    fph = f(x + h / 2)

    r3 = 0.5 * (fp1 - fm1)
    r5 = (4.0 / 3.0) * (fph - fmh) - (1.0 / 3.0) * r3

    e3 = (abs(fp1) + abs(fm1)) * DBL_EPSILON
    e5 = 2.0 * (abs(fph) + abs(fmh)) * DBL_EPSILON + e3

    # x+h 本身的有限精度带来 O(eps * x) 的误差
    dy = max(abs(r3 / h), abs(r5 / h)) * (abs(x) / h) * DBL_EPSILON

    result = r5 / h
    abserr_trunc = abs((r5 - r3) / h)
    abserr_round = abs(e5 / h) + dy
    return result, abserr_round, abserr_trunc


def _forward_step(f: Callable[[float], float], x: float, h: float) -> tuple[float, float, float]:
    """单步前向差分，返回 (导数, 舍入误差, 截断误差)。"""
    f1 = f(x + h / 4.0)
    f2 = f(x + h / 2.0)
    f3 = f(x + (3.0 / 4.0) * h)
    f4 = f(x + h)

    r2 = 2.0 * (f4 - f2)
    r4 = (22.0 / 3.0) * (f4 - f3) - (62.0 / 3.0) * (f3 - f2) + (52.0 / 3.0) * (f2 - f1)

    e4 = 2 * 20.67 * (abs(f4) + abs(f3) + abs(f2) + abs(f1)) * DBL_EPSILON

    dy = max(abs(r2 / h), abs(r4 / h)) * abs(x / h) * DBL_EPSILON

    result = r4 / h
    abserr_trunc = abs((r4 - r2) / h)
    abserr_round = abs(e4 / h) + dy
    return result, abserr_round, abserr_trunc


def deriv_central(f: Callable[[float], float], x: float, h: float) -> tuple[float, float]:
    """
    中心差分求 f'(x)。

    截断误差 O(h²)、舍入误差 O(1/h)，最优步长:
        h_opt = h * (round / (2 * trunc))^(1/3)

    Args:
        f: 被微分函数
        x: 求导点
        h: 初始步长

    Returns:
        result: 导数估计值
        abserr: 绝对误差估计
    """
    r_0, round_err, trunc_err = _central_step(f, x, h)
    error = round_err + trunc_err

    if round_err < trunc_err and (round_err > 0 and trunc_err > 0):
        h_opt = h * (round_err / (2.0 * trunc_err)) ** (1.0 / 3.0)
        r_opt, round_opt, trunc_opt = _central_step(f, x, h_opt)
        error_opt = round_opt + trunc_opt

        # 新结果须更精确，且与原估计在误差范围内一致
        if error_opt < error and abs(r_opt - r_0) < 4.0 * error:
            r_0 = r_opt
            error = error_opt

    return r_0, error


def deriv_forward(f: Callable[[float], float], x: float, h: float) -> tuple[float, float]:
    """
    前向差分求 f'(x)，只在 x 右侧 (h > 0 时) 取样。

    截断误差 O(h)、舍入误差 O(1/h)，最优步长:
        h_opt = h * (round / trunc)^(1/2)

    Args:
        f: 被微分函数
        x: 求导点
        h: 初始步长，为负时在 x 左侧取样

    Returns:
        result: 导数估计值
        abserr: 绝对误差估计
    """
    r_0, round_err, trunc_err = _forward_step(f, x, h)
    error = round_err + trunc_err

    if round_err < trunc_err and (round_err > 0 and trunc_err > 0):
        h_opt = h * (round_err / trunc_err) ** (1.0 / 2.0)
        r_opt, round_opt, trunc_opt = _forward_step(f, x, h_opt)
        error_opt = round_opt + trunc_opt

        if error_opt < error and abs(r_opt - r_0) < 4.0 * error:
            r_0 = r_opt
            error = error_opt

    return r_0, error


def deriv_backward(f: Callable[[float], float], x: float, h: float) -> tuple[float, float]:
    """后向差分求 f'(x)，只在 x 左侧取样。"""
    return deriv_forward(f, x, -h)


if __name__ == "__main__":
    import numpy as np

    print("=== 数值微分测试 ===")
    for name, func in [("central", deriv_central), ("forward", deriv_forward), ("backward", deriv_backward)]:
        result, abserr = func(np.sin, 1.0, 1e-3)
        print(f"{name:>8}: d/dx sin(1) = {result:.12f} ± {abserr:.2e} (精确值 {np.cos(1.0):.12f})")
