from dataclasses import dataclass

from courtside.core.constants import Role


# Authenticated caller as handed over by the upstream identity provider
@dataclass(frozen=True)
class Principal:
    id: str
    email: str | None = None
    role: str = Role.PLAYER.value
    is_admin: bool = False

    @property
    def is_parent(self) -> bool:
        return self.role == Role.PARENT.value
