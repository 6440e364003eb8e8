"""
workspace - 自适应积分的子区间工作区

保存尚未接受的子区间，并维护按误差降序排列的索引序列 order:
- 子区间记录存放在只增不移的列表中，下标从 0 到 size-1 保持稳定
- 重新排序只移动 order 中的索引，不移动记录本身
- order[0] 始终指向误差最大的子区间

每次二分后的重排不是完整排序，而是 QUADPACK qpsrt 的插入过程:
先把原最大误差区间 (已被较大误差的那一半替换) 自上而下插入，
再把新追加的区间自下而上插入。区间数超过约 limit/2 + 2 后，
只保证前 limit - last + 1 项有序，剩余的二分次数不足以触及更靠后的区间。
"""

from dataclasses import dataclass

from ..utils.constants import DBL_EPSILON, DBL_MIN


@dataclass
class Subinterval:
    """单个子区间 [a, b] 及其积分、误差估计和二分深度。"""

    a: float
    b: float
    result: float
    error: float
    level: int = 0


def subinterval_too_small(a1: float, a2: float, b2: float) -> bool:
    """
    判断二分得到的子区间是否已小到数值上不可再分。

    当 max(|a1|, |b2|) <= (1 + 100 eps) * (|a2| + 1000 * min_normal) 时，
    区间 [a1, b2] 的宽度已接近中点 a2 处的浮点分辨率，继续二分没有意义，
    通常意味着积分区间内有奇点或间断。

    Args:
        a1: 左半区间下限
        a2: 二分点 (右半区间下限)
        b2: 右半区间上限

    Returns:
        子区间是否可忽略
    """
    tmp = (1 + 100 * DBL_EPSILON) * (abs(a2) + 1000 * DBL_MIN)
    return abs(a1) <= tmp and abs(b2) <= tmp


class IntervalWorkspace:
    """
    子区间工作区。

    容量为 limit，每次 update 区间数恰好加一。

    Attributes:
        limit: 最大子区间数
        size: 当前子区间数
        maximum_level: 到目前为止的最大二分深度
    """

    def __init__(self, limit: int):
        """
        Args:
            limit: 最大子区间数，至少为 1
        """
        if limit < 1:
            raise ValueError(f"Workspace limit must be at least 1, got {limit}")

        self.limit = int(limit)
        self.size = 0
        self.maximum_level = 0

        self._intervals: list[Subinterval] = []
        self._order: list[int] = []
        self._i = 0  # 当前最大误差区间的下标

    def init(self, a: float, b: float, result: float, error: float):
        """重置为单个子区间 [a, b]。"""
        self._intervals = [Subinterval(a, b, result, error, 0)]
        self._order = [0]
        self._i = 0
        self.size = 1
        self.maximum_level = 0

    def retrieve(self) -> tuple[float, float, float, float]:
        """返回当前最大误差子区间的 (a, b, result, error)。"""
        if self.size == 0:
            raise RuntimeError("Workspace has not been initialised")
        interval = self._intervals[self._i]
        return interval.a, interval.b, interval.result, interval.error

    def update(
        self,
        a1: float,
        b1: float,
        area1: float,
        error1: float,
        a2: float,
        b2: float,
        area2: float,
        error2: float,
    ):
        """
        用二分得到的两个半区间替换当前最大误差区间。

        误差较大的一半原地写回最大误差区间的位置，另一半追加到末尾，
        二者深度均为原深度加一。误差相等时左半区间留在原位。
        """
        if self.size == 0:
            raise RuntimeError("Workspace has not been initialised")
        if self.size >= self.limit:
            raise RuntimeError(f"Workspace is full ({self.limit} subintervals)")

        i_max = self._i
        current = self._intervals[i_max]
        new_level = current.level + 1

        if error2 > error1:
            current.a = a2  # current.b 已等于 b2
            current.result = area2
            current.error = error2
            current.level = new_level
            self._intervals.append(Subinterval(a1, b1, area1, error1, new_level))
        else:
            current.b = b1  # current.a 已等于 a1
            current.result = area1
            current.error = error1
            current.level = new_level
            self._intervals.append(Subinterval(a2, b2, area2, error2, new_level))

        self.size += 1

        if new_level > self.maximum_level:
            self.maximum_level = new_level

        self._resort()

    def _resort(self):
        """
        维护 order 的降序 (QUADPACK qpsrt)。

        只扫描并移动 order 的前 top 项，每次更新的工作量与区间总数无关。
        比较使用严格的 < 与 >=，误差相等时先插入的区间排在前面。
        """
        last = self.size - 1
        order = self._order
        intervals = self._intervals

        i_maxerr = order[0]

        if last < 2:
            order[:] = [0, 1]
            self._i = i_maxerr
            return

        errmax = intervals[i_maxerr].error

        # 需要保持降序的项数，随剩余可二分次数减少
        if last < (self.limit // 2 + 2):
            top = last
        else:
            top = self.limit - last + 1

        # 自上而下插入 errmax
        i = 1
        while i < top and errmax < intervals[order[i]].error:
            order[i - 1] = order[i]
            i += 1
        order[i - 1] = i_maxerr

        # 被挤出有序段的下标移到末尾，order 始终是全部下标的排列
        order.append(order[top] if top < len(order) else last)

        # 自下而上插入 errmin
        errmin = intervals[last].error
        k = top - 1
        while k > i - 2 and errmin >= intervals[order[k]].error:
            order[k + 1] = order[k]
            k -= 1
        order[k + 1] = last

        self._i = order[0]

    def subinterval_check(self, a1: float, a2: float, b2: float) -> bool:
        """二分结果是否已不可再分，见 subinterval_too_small。"""
        return subinterval_too_small(a1, a2, b2)

    def sum_results(self) -> float:
        """按下标顺序累加所有子区间的积分估计。"""
        result_sum = 0.0
        for interval in self._intervals:
            result_sum += interval.result
        return result_sum

    def total_error(self) -> float:
        """所有子区间误差估计之和。"""
        error_sum = 0.0
        for interval in self._intervals:
            error_sum += interval.error
        return error_sum

    @property
    def order(self) -> tuple[int, ...]:
        """按误差降序排列的子区间下标 (副本)。"""
        return tuple(self._order)

    @property
    def intervals(self) -> tuple[Subinterval, ...]:
        """所有子区间记录，按下标排列。"""
        return tuple(self._intervals)

    def __len__(self) -> int:
        return self.size

    def __repr__(self) -> str:
        return f"IntervalWorkspace(size={self.size}, limit={self.limit}, maximum_level={self.maximum_level})"


if __name__ == "__main__":
    print("=== 子区间工作区测试 ===")

    ws = IntervalWorkspace(limit=10)
    ws.init(0.0, 1.0, 1.0, 0.8)

    # 按脚本二分，误差任意给定
    for e1, e2 in [(0.5, 0.2), (0.1, 0.3), (0.05, 0.4), (0.25, 0.25)]:
        a, b, r, e = ws.retrieve()
        m = 0.5 * (a + b)
        ws.update(a, m, r / 2, e1, m, b, r / 2, e2)
        errors = [iv.error for iv in ws.intervals]
        print(f"order={ws.order}, errors={[errors[i] for i in ws.order]}")

    print(ws)
