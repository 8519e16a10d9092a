import dataclasses
import os
from pathlib import Path

from dotenv import load_dotenv


__all__ = (
    'Settings',
    'load_settings',
)


_config_env = Path(__file__).parents[1] / 'config' / '.env'


@dataclasses.dataclass(frozen=True)
class Settings:
    postgresql_url: str = ''
    link_table: str = 'design_inventory_link'
    non_detachable_states: frozenset[str] = frozenset({'Approved', 'Commerce_Ready'})

    @classmethod
    def from_env(cls, environ=None) -> 'Settings':
        environ = os.environ if environ is None else environ
        defaults = cls()
        states = environ.get('SAGA_NON_DETACHABLE_STATES')
        return cls(
            postgresql_url=environ.get('SAGA_POSTGRESQL_URL', defaults.postgresql_url),
            link_table=environ.get('SAGA_LINK_TABLE', defaults.link_table),
            non_detachable_states=(
                frozenset(state.strip() for state in states.split(',') if state.strip())
                if states is not None else defaults.non_detachable_states
            ),
        )


def load_settings(env_file: Path | str | None = None) -> Settings:
    """Read settings from the environment, loading config/.env first."""
    load_dotenv(env_file or _config_env)
    return Settings.from_env()
