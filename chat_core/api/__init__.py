"""对外 API：默认会话的同步封装。"""
