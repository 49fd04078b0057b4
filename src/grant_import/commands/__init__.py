from grant_import.commands.cli import grant_import_group

__all__ = ["grant_import_group"]
