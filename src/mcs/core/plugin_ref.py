"""Plugin references of the form `name`, `name@alias` or `name@org/repo`."""

from dataclasses import dataclass

from mcs.core.constants import OFFICIAL_MARKETPLACE, OFFICIAL_MARKETPLACE_REPO

# Short marketplace aliases that resolve to a full repository path
KNOWN_MARKETPLACE_ALIASES: dict[str, str] = {
    OFFICIAL_MARKETPLACE: OFFICIAL_MARKETPLACE_REPO,
}


@dataclass(frozen=True)
class PluginRef:
    """A plugin name plus the marketplace repository it comes from."""

    bare_name: str
    marketplace_repo: str

    @staticmethod
    def parse(reference: str) -> "PluginRef":
        """Parse a plugin reference.

        - "my-plugin" uses the official marketplace
        - "my-plugin@claude-plugins-official" resolves the known alias
        - "my-plugin@org/repo" keeps the repo path verbatim
        - "my-plugin@unknown" passes the unknown alias through as the repo
        """
        name, sep, repo_token = reference.partition("@")
        if not sep:
            return PluginRef(bare_name=reference, marketplace_repo=OFFICIAL_MARKETPLACE_REPO)
        if "/" in repo_token:
            return PluginRef(bare_name=name, marketplace_repo=repo_token)
        return PluginRef(
            bare_name=name,
            marketplace_repo=KNOWN_MARKETPLACE_ALIASES.get(repo_token, repo_token),
        )

    @property
    def is_official(self) -> bool:
        return self.marketplace_repo == OFFICIAL_MARKETPLACE_REPO

    @property
    def full_name(self) -> str:
        """Canonical display form; the default marketplace is left implicit."""
        if self.is_official:
            return self.bare_name
        return f"{self.bare_name}@{self.marketplace_repo}"
