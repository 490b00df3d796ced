"""领域层模型与协议。

包含：
- models: Turn / RequestConfig / RequestEnvelope 数据对象。
- schemas: 补全响应与持久化槽位的 pydantic schema。
- conversation: MessageStore 与 SettingsStore 抽象。
- exceptions: 业务异常类型定义。
"""
