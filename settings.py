import json
import logging
import os
from pathlib import Path
from typing import Optional

from PyQt6.QtGui import QColor

DEFAULT_SETTINGS = {
    "recent_folders": [],  # 最近打开的文件夹列表
    "last_folder": None,  # 上次打开的文件夹
    "max_recent": 10,  # 最大记录数
    "branch_filter": None,  # None 表示只显示 HEAD 的历史，"--all" 表示所有分支
    "max_count": None,  # git log 最多读取的提交数，None 表示不限制
    "font_family": "Courier New",
    "font_size": 12,
    "graph": {  # 提交图的绘制参数
        "lane_width": 18,
        "row_height": 28,
        "commit_radius": 5,
        "line_width": 2,
    },
}


class Settings:
    def __init__(self, config_dir: Optional[str] = None):
        # 默认放在用户主目录下
        self.config_dir = config_dir or os.path.join(str(Path.home()), ".git_graph")
        if not os.path.exists(self.config_dir):
            os.makedirs(self.config_dir)

        # 配置文件路径
        self.config_file = os.path.join(self.config_dir, "settings.json")

        self.settings = json.loads(json.dumps(DEFAULT_SETTINGS))

        # 加载已有设置
        self.load_settings()

    def load_settings(self):
        """加载设置"""
        try:
            if os.path.exists(self.config_file):
                with open(self.config_file, "r", encoding="utf-8") as f:
                    saved_settings = json.load(f)
                graph = saved_settings.pop("graph", None)
                self.settings.update(saved_settings)
                if isinstance(graph, dict):
                    self.settings["graph"].update(graph)
        except (OSError, ValueError) as e:
            logging.error("加载设置失败：%s", e)

    def save_settings(self):
        """保存设置"""
        try:
            with open(self.config_file, "w", encoding="utf-8") as f:
                json.dump(self.settings, f, ensure_ascii=False, indent=2)
        except OSError as e:
            logging.error("保存设置失败：%s", e)

    def add_recent_folder(self, folder_path):
        """添加最近打开的文件夹"""
        self.settings["last_folder"] = folder_path

        recent = self.settings["recent_folders"]
        if folder_path in recent:
            recent.remove(folder_path)
        recent.insert(0, folder_path)
        self.settings["recent_folders"] = recent[: self.settings["max_recent"]]

        self.save_settings()

    def get_recent_folders(self):
        """获取最近文件夹列表"""
        return self.settings["recent_folders"]

    def get_last_folder(self):
        """获取上次打开的文件夹"""
        return self.settings["last_folder"]

    def get_branch_filter(self) -> Optional[str]:
        return self.settings.get("branch_filter")

    def set_branch_filter(self, branch: Optional[str]):
        self.settings["branch_filter"] = branch
        self.save_settings()

    def get_max_count(self) -> Optional[int]:
        return self.settings.get("max_count")

    def get_font(self) -> tuple[str, int]:
        return self.settings["font_family"], self.settings["font_size"]

    def get_graph_metrics(self) -> dict:
        """获取提交图的绘制参数"""
        metrics = dict(DEFAULT_SETTINGS["graph"])
        metrics.update(self.settings.get("graph", {}))
        return metrics


# Lane colours, lane n uses COLOR_PALETTE[n % len(COLOR_PALETTE)]
COLOR_PALETTE = [
    QColor("#e8832a"),
    QColor("#3d9fd4"),
    QColor("#4faa5e"),
    QColor("#c75dd3"),
    QColor("#e05c5c"),
    QColor("#1abc9c"),
    QColor("#9b59b6"),
    QColor("#e8b84b"),
    QColor("#16a085"),
    QColor("#d35400"),
]


def lane_color(lane: int) -> QColor:
    return COLOR_PALETTE[lane % len(COLOR_PALETTE)]
