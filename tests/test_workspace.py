"""
workspace 模块单元测试
"""

import numpy as np
import pytest

from adaptive_quadrature.core.workspace import IntervalWorkspace, subinterval_too_small
from adaptive_quadrature.utils.constants import DBL_EPSILON


def _bisect(ws: IntervalWorkspace, error1: float, error2: float):
    """按给定误差二分当前最大误差区间，积分估计取区间长度。"""
    a, b, _, _ = ws.retrieve()
    m = 0.5 * (a + b)
    ws.update(a, m, m - a, error1, m, b, b - m, error2)


def _errors(ws: IntervalWorkspace) -> list[float]:
    return [interval.error for interval in ws.intervals]


class _ArrayWorkspace:
    """定长数组实现的参照版本，按原始 qpsrt 的移位方式维护 order。"""

    def __init__(self, limit: int):
        self.limit = limit
        self.elist = [0.0] * limit
        self.order = [0] * limit
        self.size = 1
        self.i = 0

    def update(self, error1: float, error2: float):
        i_max = self.i
        i_new = self.size
        self.elist[i_max], self.elist[i_new] = max(error1, error2), min(error1, error2)
        self.size += 1
        self._qpsrt()

    def _qpsrt(self):
        last = self.size - 1
        elist, order = self.elist, self.order
        i_maxerr = order[0]
        if last < 2:
            order[0], order[1] = 0, 1
            self.i = i_maxerr
            return
        errmax = elist[i_maxerr]
        top = last if last < self.limit // 2 + 2 else self.limit - last + 1
        i = 1
        while i < top and errmax < elist[order[i]]:
            order[i - 1] = order[i]
            i += 1
        order[i - 1] = i_maxerr
        errmin = elist[last]
        k = top - 1
        while k > i - 2 and errmin >= elist[order[k]]:
            order[k + 1] = order[k]
            k -= 1
        order[k + 1] = last
        self.i = order[0]


class TestInitAndRetrieve:
    """初始化与取出测试"""

    def test_init(self):
        """测试初始化为单个区间"""
        ws = IntervalWorkspace(limit=10)
        ws.init(0.0, 2.0, 1.5, 0.25)

        assert ws.size == 1
        assert len(ws) == 1
        assert ws.order == (0,)
        assert ws.maximum_level == 0
        assert ws.intervals[0].level == 0
        assert ws.retrieve() == (0.0, 2.0, 1.5, 0.25)

    def test_init_resets(self):
        """测试重复初始化会清空旧状态"""
        ws = IntervalWorkspace(limit=10)
        ws.init(0.0, 1.0, 1.0, 1.0)
        _bisect(ws, 0.4, 0.6)
        _bisect(ws, 0.1, 0.2)

        ws.init(-1.0, 1.0, 2.0, 0.5)
        assert ws.size == 1
        assert ws.order == (0,)
        assert ws.maximum_level == 0
        assert ws.retrieve() == (-1.0, 1.0, 2.0, 0.5)

    def test_invalid_limit(self):
        """测试容量必须为正"""
        with pytest.raises(ValueError):
            IntervalWorkspace(limit=0)

    def test_use_before_init(self):
        """测试未初始化时不能取出或更新"""
        ws = IntervalWorkspace(limit=5)
        with pytest.raises(RuntimeError):
            ws.retrieve()
        with pytest.raises(RuntimeError):
            ws.update(0.0, 0.5, 0.5, 0.1, 0.5, 1.0, 0.5, 0.1)

    def test_update_when_full(self):
        """测试超出容量时拒绝更新"""
        ws = IntervalWorkspace(limit=2)
        ws.init(0.0, 1.0, 1.0, 1.0)
        _bisect(ws, 0.5, 0.4)
        with pytest.raises(RuntimeError):
            _bisect(ws, 0.2, 0.1)


class TestUpdate:
    """二分更新测试"""

    def test_larger_right_half_stays_in_place(self):
        """测试误差较大的右半区间写回原位置"""
        ws = IntervalWorkspace(limit=10)
        ws.init(0.0, 1.0, 1.0, 0.5)
        ws.update(0.0, 0.5, 0.4, 0.1, 0.5, 1.0, 0.6, 0.3)

        first, second = ws.intervals
        assert (first.a, first.b, first.result, first.error) == (0.5, 1.0, 0.6, 0.3)
        assert (second.a, second.b, second.result, second.error) == (0.0, 0.5, 0.4, 0.1)
        assert first.level == second.level == 1
        assert ws.size == 2
        assert ws.order == (0, 1)
        assert ws.retrieve() == (0.5, 1.0, 0.6, 0.3)

    def test_larger_left_half_stays_in_place(self):
        """测试误差较大的左半区间写回原位置"""
        ws = IntervalWorkspace(limit=10)
        ws.init(0.0, 1.0, 1.0, 0.5)
        ws.update(0.0, 0.5, 0.4, 0.3, 0.5, 1.0, 0.6, 0.1)

        first, second = ws.intervals
        assert (first.a, first.b) == (0.0, 0.5)
        assert (second.a, second.b) == (0.5, 1.0)

    def test_tie_keeps_left_half_in_place(self):
        """测试误差相等时左半区间留在原位置"""
        ws = IntervalWorkspace(limit=10)
        ws.init(0.0, 1.0, 1.0, 0.5)
        ws.update(0.0, 0.5, 0.5, 0.2, 0.5, 1.0, 0.5, 0.2)

        first, second = ws.intervals
        assert (first.a, first.b) == (0.0, 0.5)
        assert (second.a, second.b) == (0.5, 1.0)

    def test_tie_prefers_newer_interval(self):
        """测试误差全部相等时新追加的区间排在最前"""
        ws = IntervalWorkspace(limit=20)
        ws.init(0.0, 1.0, 1.0, 1.0)
        _bisect(ws, 1.0, 1.0)
        assert ws.order == (0, 1)

        _bisect(ws, 1.0, 1.0)
        assert ws.order == (2, 0, 1)

        _bisect(ws, 1.0, 1.0)
        assert ws.order == (3, 2, 0, 1)
        assert ws.retrieve()[:2] == (0.375, 0.5)

    def test_maximum_level(self):
        """测试最大二分深度"""
        ws = IntervalWorkspace(limit=10)
        ws.init(0.0, 1.0, 1.0, 1.0)

        # 左半误差总是更大，原位置区间被反复二分
        for depth in range(1, 5):
            _bisect(ws, 0.5**depth, 0.1**depth)
            assert ws.maximum_level == depth

        assert ws.intervals[0].level == 4
        assert ws.intervals[0].b == 1.0 / 16
        assert [interval.level for interval in ws.intervals[1:]] == [1, 2, 3, 4]

    def test_sum_results_and_total_error(self):
        """测试积分与误差求和"""
        ws = IntervalWorkspace(limit=10)
        ws.init(0.0, 1.0, 1.0, 0.5)
        _bisect(ws, 0.25, 0.125)
        _bisect(ws, 0.0625, 0.03125)

        assert ws.sum_results() == pytest.approx(1.0)
        assert ws.total_error() == pytest.approx(0.125 + 0.0625 + 0.03125)


class TestResort:
    """误差降序维护测试"""

    def test_order_matches_brute_force(self):
        """测试每次更新后 order[0] 为误差最大的区间，且整体降序"""
        rng = np.random.default_rng(20240601)
        ws = IntervalWorkspace(limit=200)
        ws.init(0.0, 1.0, 1.0, 1.0)

        for _ in range(80):
            _bisect(ws, *rng.uniform(0.0, 1.0, size=2))

            errors = _errors(ws)
            order = ws.order
            assert errors[order[0]] == max(errors)
            assert all(errors[order[j]] >= errors[order[j + 1]] for j in range(len(order) - 1))
            assert ws.retrieve()[3] == max(errors)

    def test_scripted_sequence(self):
        """测试给定误差序列下的排序结果"""
        ws = IntervalWorkspace(limit=20)
        ws.init(0.0, 1.0, 1.0, 0.8)

        _bisect(ws, 0.5, 0.2)  # [0]=0.5, [1]=0.2
        assert ws.order == (0, 1)

        _bisect(ws, 0.1, 0.3)  # [0]=0.3, [2]=0.1
        assert ws.order == (0, 1, 2)

        _bisect(ws, 0.05, 0.4)  # [0]=0.4, [3]=0.05
        assert ws.order == (0, 1, 2, 3)

        _bisect(ws, 0.15, 0.12)  # [0]=0.15, [4]=0.12
        assert ws.order == (1, 0, 4, 2, 3)
        assert _errors(ws) == [0.15, 0.2, 0.1, 0.05, 0.12]

    def test_order_is_permutation(self):
        """测试 order 在只维护前段有序后仍是全部下标的排列"""
        rng = np.random.default_rng(7)
        limit = 30
        ws = IntervalWorkspace(limit=limit)
        ws.init(0.0, 1.0, 1.0, 1.0)

        for _ in range(limit - 1):
            _bisect(ws, *rng.uniform(0.0, 1.0, size=2))
            assert sorted(ws.order) == list(range(ws.size))

        assert ws.size == limit

    def test_tail_untouched_when_top_slice_shrinks(self):
        """测试有序段缩短后只移动前 top 项，其余下标保持原位"""
        rng = np.random.default_rng(99)
        limit = 40
        ws = IntervalWorkspace(limit=limit)
        ws.init(0.0, 1.0, 1.0, 1.0)

        checked = 0
        for _ in range(limit - 1):
            before = ws.order
            _bisect(ws, *rng.uniform(0.0, 1.0, size=2))
            after = ws.order

            last = ws.size - 1
            top = last if last < limit // 2 + 2 else limit - last + 1
            if top < last:
                assert after[top + 1 : last] == before[top + 1 :]
                assert after[last] == before[top]
                checked += 1

        assert checked > 0

    def test_matches_array_reference(self):
        """测试与定长数组移位实现选出的区间序列一致"""
        rng = np.random.default_rng(12345)
        limit = 40
        ws = IntervalWorkspace(limit=limit)
        ws.init(0.0, 1.0, 1.0, 1.0)
        reference = _ArrayWorkspace(limit)
        reference.elist[0] = 1.0

        for _ in range(limit - 1):
            e1, e2 = rng.uniform(0.0, 1.0, size=2)
            _bisect(ws, e1, e2)
            reference.update(e1, e2)

            top = ws.size - 1 if ws.size - 1 < limit // 2 + 2 else limit - ws.size + 2
            assert ws.order[:top] == tuple(reference.order[:top])
            assert ws.order[0] == reference.i


class TestSubintervalTooSmall:
    """不可再分判定测试"""

    def test_regular_interval(self):
        """测试普通区间"""
        assert not subinterval_too_small(0.0, 0.5, 1.0)
        assert not subinterval_too_small(1.0, 1.0 + 1e-10, 1.0 + 2e-10)

    def test_interval_at_float_resolution(self):
        """测试宽度接近浮点分辨率的区间"""
        assert subinterval_too_small(1.0, 1.0 + DBL_EPSILON, 1.0 + 2 * DBL_EPSILON)
        assert subinterval_too_small(-1.0 - 2 * DBL_EPSILON, -1.0 - DBL_EPSILON, -1.0)

    def test_interval_near_zero(self):
        """测试零点附近接近下溢的区间"""
        assert subinterval_too_small(0.0, 1e-310, 2e-310)
        assert not subinterval_too_small(0.0, 1e-10, 2e-10)

    def test_negative_interval(self):
        """测试负半轴上的普通区间"""
        assert not subinterval_too_small(-1.0, -0.5, 0.0)
        assert not subinterval_too_small(-2.0, -1.5, -1.0)

    def test_workspace_method(self):
        """测试工作区方法委托给模块函数"""
        ws = IntervalWorkspace(limit=3)
        assert ws.subinterval_check(1.0, 1.0 + DBL_EPSILON, 1.0 + 2 * DBL_EPSILON)
        assert not ws.subinterval_check(0.0, 0.5, 1.0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
