"""Environment and credential loading."""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import ConfigError


REQUIRED_VARIABLES = ("TENANT_ID", "CLIENT_ID", "CLIENT_SECRET", "USER_ID")
PROJECT_ROOT = Path(__file__).resolve().parent.parent


def _strip_optional_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
        return value[1:-1]
    return value


def load_env_file(path: Path, override: bool = False) -> None:
    """Load KEY=VALUE lines from ``path`` into ``os.environ``."""
    if not path.exists():
        raise ConfigError(f"env file not found: {path}")
    if not path.is_file():
        raise ConfigError(f"env path is not a file: {path}")

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"could not read env file {path}: {exc}") from exc

    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export ") :].strip()
        if "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        if not key:
            continue

        value = _strip_optional_quotes(value.strip())
        if override or key not in os.environ:
            os.environ[key] = value


def resolve_env_file() -> Optional[Path]:
    """$DRIVEUP_ENV_FILE, then ./.env, then the .env beside the project."""
    explicit = os.getenv("DRIVEUP_ENV_FILE")
    if explicit:
        return Path(explicit).expanduser()

    for candidate in (Path(".env"), PROJECT_ROOT / ".env"):
        if candidate.is_file():
            return candidate
    return None


@dataclass(frozen=True)
class Credentials:
    """App registration credentials and the target OneDrive user."""
    tenant_id: str
    client_id: str
    client_secret: str
    user_id: str

    @classmethod
    def from_env(cls) -> "Credentials":
        missing = [name for name in REQUIRED_VARIABLES if not os.getenv(name)]
        if missing:
            raise ConfigError(f"{', '.join(missing)} {'is' if len(missing) == 1 else 'are'} required")
        return cls(
            tenant_id=os.environ["TENANT_ID"],
            client_id=os.environ["CLIENT_ID"],
            client_secret=os.environ["CLIENT_SECRET"],
            user_id=os.environ["USER_ID"],
        )

    def __repr__(self) -> str:
        return (
            f"Credentials(tenant_id={self.tenant_id!r}, client_id={self.client_id!r}, "
            f"client_secret='***', user_id={self.user_id!r})"
        )
