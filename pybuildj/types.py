from typing import Literal

Action = Literal["build", "ninja", "rules"]
