"""rss-shell: 基于数据库的 RSS 输出服务."""

__version__ = "0.1.0"
