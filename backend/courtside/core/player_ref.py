from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class RegisteredRef:
    account_id: str

    @property
    def kind(self) -> str:
        return "registered"


@dataclass(frozen=True)
class ManualRef:
    manual_id: int

    @property
    def kind(self) -> str:
        return "manual"


# A roster participant is either a real account or a manual placeholder
PlayerRef = Union[RegisteredRef, ManualRef]


def ref_to_dict(ref: PlayerRef) -> dict:
    match ref:
        case RegisteredRef(account_id=account_id):
            return {"kind": "registered", "accountId": account_id}
        case ManualRef(manual_id=manual_id):
            return {"kind": "manual", "manualPlayerId": manual_id}
    raise TypeError(f"not a player reference: {ref!r}")
