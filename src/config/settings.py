"""
Application settings and configuration

Uses pydantic-settings for type-safe configuration via environment variables.
All settings use PAGESMITH_ prefix (e.g., PAGESMITH_FORMATTER_MODE=minimize).

Settings can also be loaded from a .env file in the project root.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application configuration via environment variables.

    Environment variables use PAGESMITH_ prefix.

    Examples:
        PAGESMITH_DIRECTIVE_PREFIX=x-
        PAGESMITH_FORMATTER_MODE=none
        PAGESMITH_DETECT_CYCLES=false
    """

    model_config = SettingsConfigDict(
        env_prefix="PAGESMITH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Markup vocabulary
    directive_prefix: str = Field(
        default="m-",
        description="Tag name prefix for directive elements (m-fragment, m-slot, ...)",
    )

    default_slot_name: str = Field(
        default="[default]",
        description="Slot name used for unnamed slots and loose content",
    )

    # Expression configuration
    expression_open: str = Field(
        default="{{",
        description="Opening delimiter for embedded expressions",
    )

    expression_close: str = Field(
        default="}}",
        description="Closing delimiter for embedded expressions",
    )

    # Compilation configuration
    style_bind_default: Literal["head", "link"] = Field(
        default="head",
        description="Bind mode for component styles that do not declare one",
    )

    detect_cycles: bool = Field(
        default=True,
        description="Fail fast when a fragment or component includes itself",
    )

    max_include_depth: int = Field(
        default=64,
        description="Maximum nesting depth of fragment/component inclusion",
    )

    # Output configuration
    formatter_mode: Literal["pretty", "minimize", "none"] = Field(
        default="pretty",
        description="Whitespace handling applied to compiled pages",
    )

    formatter_indent: str = Field(
        default="    ",
        description="Indent unit used by the pretty formatter",
    )

    def directiveTag_make(self, kind: str) -> str:
        """
        Build the tag name of a directive element.

        Args:
            kind: Directive kind (fragment, component, slot, content, var, import)

        Returns:
            Full tag name

        Example:
            >>> settings = AppSettings()
            >>> settings.directiveTag_make('fragment')
            'm-fragment'
        """
        return f"{self.directive_prefix}{kind}"

    def directiveKind_extract(self, tag_name: str) -> str | None:
        """
        Extract the directive kind from a tag name.

        Args:
            tag_name: Tag name to inspect

        Returns:
            Directive kind if the tag carries the directive prefix, None otherwise

        Example:
            >>> settings = AppSettings()
            >>> settings.directiveKind_extract('m-slot')
            'slot'
        """
        if not tag_name.startswith(self.directive_prefix):
            return None
        kind = tag_name[len(self.directive_prefix):]
        return kind or None


# Singleton instance - import this in your code
appsettings = AppSettings()
