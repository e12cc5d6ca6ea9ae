"""
Console Channel Module

Line-oriented input/output used by the workflow. The terminal implementation
talks to stdin/stdout; the scripted implementation replays canned answers and
records everything written, so the workflow can run without a person at the
keyboard.
"""

from abc import ABC, abstractmethod
from collections import deque
from typing import Iterable, List
import getpass


class ConsoleChannel(ABC):
    """Abstract interactive channel"""

    @abstractmethod
    def prompt(self, text: str) -> str:
        """Show ``text`` and return one line of input; raises EOFError at end of input"""
        pass

    @abstractmethod
    def prompt_secret(self, text: str) -> str:
        """Like ``prompt`` but without echoing the answer"""
        pass

    @abstractmethod
    def write(self, text: str = "") -> None:
        """Write one line of output"""
        pass


class TerminalConsole(ConsoleChannel):
    """Console bound to the process's terminal"""

    def prompt(self, text: str) -> str:
        return input(text)

    def prompt_secret(self, text: str) -> str:
        return getpass.getpass(text)

    def write(self, text: str = "") -> None:
        print(text)


class ScriptedConsole(ConsoleChannel):
    """Console that answers prompts from a fixed list of responses"""

    def __init__(self, responses: Iterable[str]):
        self._responses = deque(responses)
        self.prompts: List[str] = []
        self.output: List[str] = []

    def prompt(self, text: str) -> str:
        self.prompts.append(text)
        if not self._responses:
            raise EOFError("No scripted response left")
        return self._responses.popleft()

    def prompt_secret(self, text: str) -> str:
        return self.prompt(text)

    def write(self, text: str = "") -> None:
        self.output.append(text)

    @property
    def remaining(self) -> int:
        return len(self._responses)

    @property
    def transcript(self) -> str:
        return "\n".join(self.output)
