from typing import Annotated

from pydantic import StringConstraints

FISCAL_CODE_PATTERN = (
    r"^[A-Z]{6}[0-9LMNPQRSTUV]{2}[ABCDEHLMPRST][0-9LMNPQRSTUV]{2}[A-Z][0-9LMNPQRSTUV]{3}[A-Z]$"
)

FiscalCode = Annotated[str, StringConstraints(pattern=FISCAL_CODE_PATTERN)]
NonEmptyString = Annotated[str, StringConstraints(min_length=1)]
SessionToken = Annotated[str, StringConstraints(min_length=1)]
