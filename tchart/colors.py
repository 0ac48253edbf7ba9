from colorama import Fore, Style

RED     = Fore.RED
GREEN   = Fore.GREEN
BLUE    = Fore.BLUE
MAGENTA = Fore.MAGENTA
CYAN    = Fore.CYAN

# One color per sub-group of a split time histogram
SPLIT_COLORS = (RED, BLUE, MAGENTA, GREEN, CYAN)


class Palette:
    """Color choice for one render pass.

    Escape codes wrap already aligned text, so a colored rendering has the
    same columns as a plain one once the codes are stripped.
    """

    def __init__(self, enabled: bool = False):
        self.enabled = enabled

    def paint(self, text: str, color: str) -> str:
        if not self.enabled or not text:
            return text
        return f"{color}{text}{Style.RESET_ALL}"

    def __repr__(self):
        return f"Palette(enabled={self.enabled})"


PLAIN = Palette(False)
