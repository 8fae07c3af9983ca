"""Typed version of the "Startup Procedure" table on the connection status page."""

from dataclasses import asdict, dataclass, fields


@dataclass(frozen=True)
class StatusEntry:
    status: str
    comment: str = ""


@dataclass(frozen=True)
class StartupProcedure:
    """One field per row of the table, in the order the modem lists them.

    metric=Acquire Downstream Channel value={'status': '363000000 Hz', 'comment': 'Locked'}
    """

    acquire_downstream_channel: StatusEntry
    connectivity_state: StatusEntry
    boot_state: StatusEntry
    configuration_file: StatusEntry
    security: StatusEntry
    docsis_network_enabled: StatusEntry

    @classmethod
    def field_names(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    def to_dict(self) -> dict[str, dict[str, str]]:
        # asdict keeps field declaration order, which is what ends up in the JSON
        return asdict(self)
