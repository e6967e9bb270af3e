import logging
from dataclasses import dataclass

from .config import VanityConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Vanity:
    """Values rendered into the go-import and go-source meta tags."""
    import_path: str
    vcs: str
    repo: str
    display: str
    subpath: str = ''


class VanityHandler:
    """
    Configuration plus the rule set built from it.

    Never mutated after construction; a reload replaces the whole handler.
    """
    def __init__(self, config: VanityConfig):
        self.config = config
        self.rules = config.build_rule_set()

    @property
    def cache_control(self) -> str:
        return self.config.cache_control

    def host(self, request_host: str) -> str:
        """Configured host, falling back to the one the request was sent to."""
        return self.config.host or request_host

    def resolve(self, host: str, path: str) -> Vanity | None:
        match = self.rules.find(path)
        if match is None:
            logger.debug('No rule for %s', path)
            return None

        payload = match.rule.payload
        return Vanity(
            import_path=host + match.path,
            vcs=payload.vcs,
            repo=match.expand(payload.repo),
            display=match.expand(payload.display),
            subpath=match.subpath,
        )

    def index(self, host: str) -> list[str]:
        """Import paths of every literal rule, in path order."""
        return [host + rule.path for rule in self.rules.literals]
