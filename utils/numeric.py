"""
numeric - 通用数值辅助函数

提供整数幂 (快速幂) 与双精度强制舍入等叶子级工具。
"""

import numpy as np


def pow_int(x: float, n) -> float:
    """
    快速幂计算 x^n。

    对整数类型做泛型处理：只要求指数支持比较、取负、整除 2 和取模 2，
    因此 Python int、numpy 整数以及任意精度整数都走同一条路径。

    Args:
        x: 底数
        n: 整数指数，可为负数

    Returns:
        x 的 n 次幂；n < 0 时返回 (1/x)^|n|
    """
    if n < 0:
        x = 1.0 / x
        n = -n

    value = 1.0
    while n > 0:
        if n % 2 == 1:
            value *= x
        n = n // 2
        x *= x
    return value


def coerce_double(x: float) -> float:
    """强制舍入到 IEEE 双精度。"""
    return float(np.float64(x))


if __name__ == "__main__":
    print("=== 整数幂测试 ===")
    print(f"2^10 = {pow_int(2.0, 10)}")
    print(f"2^-3 = {pow_int(2.0, -3)}")
    print(f"1^(2^70+1) = {pow_int(1.0, 2**70 + 1)}")
    print(f"numpy 指数: 3^np.int64(4) = {pow_int(3.0, np.int64(4))}")
