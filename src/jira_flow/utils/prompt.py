"""콘솔 대화형 입력 유틸리티."""

from __future__ import annotations

from collections.abc import Callable, Sequence

from jira_flow.exceptions import ValidationError


class ConsolePrompter:
    """표준 입력으로 사용자 선택을 받는 프롬프터.

    타임아웃은 없으며, 입력 스트림이 닫히면 ValidationError를 발생시킵니다.
    """

    def __init__(
        self,
        input_fn: Callable[[str], str] = input,
        output_fn: Callable[[str], None] = print,
    ) -> None:
        self._input = input_fn
        self._output = output_fn

    def _read(self, message: str) -> str:
        try:
            return self._input(message).strip()
        except EOFError as e:
            raise ValidationError("입력이 취소되었습니다.") from e

    def choose(self, message: str, choices: Sequence[str]) -> int:
        """번호 목록 중 하나를 선택받고, 선택한 인덱스를 반환합니다."""
        if not choices:
            raise ValidationError(f"선택할 항목이 없습니다: {message}")

        self._output(f"\n{message}")
        for index, choice in enumerate(choices):
            self._output(f"  [{index}] {choice}")

        last = len(choices) - 1
        while True:
            answer = self._read(f"번호를 입력하세요 [0 - {last}]: ")
            if answer.isdigit() and 0 <= int(answer) <= last:
                return int(answer)
            self._output(f"  0 ~ {last} 사이의 번호를 입력하세요.")

    def ask(self, message: str) -> str:
        """자유 입력을 받습니다. 빈 입력은 빈 문자열로 반환합니다."""
        return self._read(f"{message}: ")
