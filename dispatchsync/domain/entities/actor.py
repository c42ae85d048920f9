"""Actor — who triggered a status change. Identity is verified upstream."""

from dataclasses import dataclass

from dispatchsync.domain.value_objects.enums import ActorKind


@dataclass(frozen=True)
class Actor:
    kind: ActorKind
    actor_id: str
    name: str | None = None

    @property
    def admin_initiated(self) -> bool:
        return self.kind == ActorKind.ADMIN

    @classmethod
    def driver(cls, driver_id: str) -> "Actor":
        return cls(kind=ActorKind.DRIVER, actor_id=driver_id)

    @classmethod
    def admin(cls, admin_id: str, name: str | None = None) -> "Actor":
        return cls(kind=ActorKind.ADMIN, actor_id=admin_id, name=name)
