"""Interactive prompts used by the CLI."""

from typing import List, Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter

from ..util.logging import log


async def _ask(message: str, completer: Optional[WordCompleter] = None) -> Optional[str]:
    """One line of input; None when the user interrupts."""
    session = PromptSession(completer=completer)
    try:
        return await session.prompt_async(message)
    except (KeyboardInterrupt, EOFError):
        log("DEBUG", "prompts", "interrupted", message=message)
        return None


async def confirm_yes_no(message: str) -> bool:
    while True:
        answer = await _ask(f"{message} (y/n) ")
        if answer is None:
            return False
        answer = answer.strip().lower()
        if answer in ("y", "yes"):
            return True
        if answer in ("n", "no"):
            return False


async def select_from_list(message: str, options: List[str]) -> Optional[str]:
    """Pick by number or by typing the option; None on interrupt."""
    print(message)
    for i, opt in enumerate(options, start=1):
        print(f"  {i}. {opt}")
    completer = WordCompleter(options, sentence=True)
    while True:
        answer = await _ask("> ", completer)
        if answer is None:
            return None
        answer = answer.strip()
        if answer.isdigit() and 1 <= int(answer) <= len(options):
            return options[int(answer) - 1]
        if answer in options:
            return answer


async def get_user_input(message: str, required: bool = False) -> Optional[str]:
    while True:
        answer = await _ask(f"{message}: ")
        if answer is None:
            return None
        if answer.strip() or not required:
            return answer.strip()
