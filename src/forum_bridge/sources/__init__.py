"""Source-specific import scripts."""

from forum_bridge.sources.drupal import DrupalImportScript

SCRIPTS = {
    "drupal": DrupalImportScript,
}

__all__ = ["DrupalImportScript", "SCRIPTS"]
