# dag_item_delegate.py

from typing import TYPE_CHECKING, Optional

from PyQt6.QtCore import QModelIndex, QPointF, QRect, QRectF, QSize, Qt
from PyQt6.QtGui import QPainter, QPainterPath, QPen
from PyQt6.QtWidgets import QStyledItemDelegate, QStyleOptionViewItem, QWidget

from git_graph_data import RowGraphData
from settings import DEFAULT_SETTINGS, lane_color

if TYPE_CHECKING:
    from graph_session import GraphSnapshot

GRAPH_LEFT_MARGIN = 10


def lane_x(rect: QRect, lane: int, metrics: dict) -> float:
    """Horizontal centre of `lane` inside `rect`, snapped to the half pixel."""
    return round(rect.left() + lane * metrics["lane_width"] + GRAPH_LEFT_MARGIN) + 0.5


def graph_width(lane_count: int, metrics: dict) -> int:
    return lane_count * metrics["lane_width"] + 12


def paint_row_graph(
    painter: QPainter,
    rect: QRect,
    lane: int,
    row_data: RowGraphData,
    is_head: bool,
    metrics: Optional[dict] = None,
):
    """
    Draws one row of the commit graph using only that row's precomputed data.

    Order: passthrough lines, the commit's own lane, merge/branch curves, then
    the commit dot on top. Curves leave from the top/bottom edge of the row so
    the halves drawn by two rows meet.
    """
    metrics = metrics or DEFAULT_SETTINGS["graph"]
    top = float(rect.top())
    bottom = float(rect.top() + rect.height())
    y = top + rect.height() / 2
    x = lane_x(rect, lane, metrics)
    color = lane_color(lane)

    painter.save()
    painter.setRenderHint(QPainter.RenderHint.Antialiasing)
    painter.setBrush(Qt.BrushStyle.NoBrush)

    # 1. passthrough lanes
    for passthrough_lane in row_data.passthrough_lanes:
        px = lane_x(rect, passthrough_lane, metrics)
        painter.setPen(QPen(lane_color(passthrough_lane), metrics["line_width"]))
        painter.drawLine(QPointF(px, top), QPointF(px, bottom))

    # 2. this commit's lane
    painter.setPen(QPen(color, metrics["line_width"]))
    if row_data.has_incoming:
        painter.drawLine(QPointF(x, top), QPointF(x, y))
    if row_data.has_outgoing:
        painter.drawLine(QPointF(x, y), QPointF(x, bottom))

    # 3. merge / branch curves
    for child_lane in row_data.merge_incoming_from_lanes:
        child_x = lane_x(rect, child_lane, metrics)
        path = QPainterPath(QPointF(child_x, top))
        path.cubicTo(QPointF(child_x, y), QPointF(x, top), QPointF(x, y))
        painter.drawPath(path)
    for parent_lane in row_data.merge_outgoing_to_lanes:
        parent_x = lane_x(rect, parent_lane, metrics)
        path = QPainterPath(QPointF(x, y))
        path.cubicTo(QPointF(x, bottom), QPointF(parent_x, y), QPointF(parent_x, bottom))
        painter.drawPath(path)

    # 4. commit dot
    radius = metrics["commit_radius"]
    dot = QRectF(x - radius, y - radius, radius * 2, radius * 2)
    if is_head:
        # HEAD is a ring with a small filled centre
        painter.setBrush(painter.background())
        painter.setPen(QPen(color, 2))
        painter.drawEllipse(dot)
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(color)
        painter.drawEllipse(QPointF(x, y), 2, 2)
    else:
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(color)
        painter.drawEllipse(dot)

    painter.restore()


class DAGItemDelegate(QStyledItemDelegate):
    """
    自定义委托，用于在树形控件的第一列绘制 DAG 图形
    """

    def __init__(self, parent: Optional[QWidget] = None, metrics: Optional[dict] = None):
        super().__init__(parent)
        self.snapshot: Optional["GraphSnapshot"] = None
        self.metrics = metrics or dict(DEFAULT_SETTINGS["graph"])

    def set_snapshot(self, snapshot: "GraphSnapshot"):
        """设置要绘制的提交图"""
        self.snapshot = snapshot

    def width_hint(self) -> int:
        if not self.snapshot:
            return graph_width(1, self.metrics)
        return graph_width(self.snapshot.lane_count, self.metrics)

    def sizeHint(self, option: QStyleOptionViewItem, index: QModelIndex) -> QSize:
        size = super().sizeHint(option, index)
        if index.column() == 0:
            return QSize(self.width_hint(), self.metrics["row_height"])
        return QSize(size.width(), max(size.height(), self.metrics["row_height"]))

    def paint(self, painter: QPainter, option: QStyleOptionViewItem, index: QModelIndex):
        """绘制 DAG 图形"""
        # selection highlight goes behind the graph
        super().paint(painter, option, index)

        row = index.row()
        if index.column() != 0 or not self.snapshot or row >= len(self.snapshot.rows):
            return

        commit = self.snapshot.commits[row]
        paint_row_graph(
            painter,
            option.rect,
            self.snapshot.lane_of(row),
            self.snapshot.rows[row],
            commit.hash == self.snapshot.head_hash,
            self.metrics,
        )
