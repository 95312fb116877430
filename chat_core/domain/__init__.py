"""领域层模型与协议。

包含：
- models: ConversationTurn / Language / ProviderResult / OrchestratorResult 等模型。
- exceptions: 业务异常类型定义。
- messages: 失败类型到本地化用户提示的映射。
"""
