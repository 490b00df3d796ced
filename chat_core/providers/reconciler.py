"""补全响应解析。

把原始响应 JSON 解析为 ChatCompletion，并选出回复 Turn：
取 choices 中的**最后**一个候选（后面的候选被视为最终答案），
去除首尾空白后返回。任何结构问题都以 ParseError 报告，
调用方在这条路径上不能追加任何 Turn。
"""

from typing import Union

from pydantic import ValidationError as SchemaValidationError

from chat_core.domain.exceptions import ParseError
from chat_core.domain.models import Turn
from chat_core.domain.schemas import ChatCompletion


class ResponseReconciler:
    def parse(self, raw_body: Union[str, bytes]) -> ChatCompletion:
        try:
            return ChatCompletion.model_validate_json(raw_body)
        except SchemaValidationError as e:
            raise ParseError(code="PARSE_ERROR", message=str(e))

    def apply(self, raw_body: Union[str, bytes]) -> Turn:
        completion = self.parse(raw_body)
        if not completion.choices:
            raise ParseError(code="PARSE_ERROR", message="completion response contains no choices")
        return completion.choices[-1].message.to_turn(strip=True)
