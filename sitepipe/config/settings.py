"""Site settings powered by Pydantic BaseSettings."""

from pathlib import Path
from typing import TYPE_CHECKING, Annotated

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from sitepipe.site.constants import (
    DEFAULT_ASSETS_DIR,
    DEFAULT_ASSETS_ROUTE,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_PUBLIC_DIR,
)


if TYPE_CHECKING:
    from sitepipe.site.context import BuildContext
    from sitepipe.site.site import Site


class SiteSettings(BaseSettings):
    """Directory layout, build commands and dev server address.

    Values come from ``SITEPIPE_*`` environment variables (or ``.env``);
    values passed to the constructor, such as those read from a YAML site
    file, take precedence.
    """

    model_config = SettingsConfigDict(
        env_prefix="SITEPIPE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    public_dir: Path = Path(DEFAULT_PUBLIC_DIR)
    assets_dir: Path = Path(DEFAULT_ASSETS_DIR)
    assets_route: str = DEFAULT_ASSETS_ROUTE
    commands: list[str] = Field(default_factory=list)
    shell: str | None = None
    command_timeout: Annotated[float, Field(gt=0)] | None = None
    host: str = "127.0.0.1"
    port: Annotated[int, Field(ge=0, le=65535)] = 8080

    def apply(self, ctx: "BuildContext", site: "Site") -> None:
        """Configuration step that applies these settings to a site.

        Queue it before the site's own configurer so the configurer can
        still override directories or add commands.
        """
        site.output_dir = self.output_dir
        site.public_dir = self.public_dir
        site.assets_dir = self.assets_dir
        site.assets_route = self.assets_route
        site.shell = self.shell
        site.command_timeout = self.command_timeout
        for command in self.commands:
            site.run(command)
