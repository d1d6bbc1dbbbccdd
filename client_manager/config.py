import os
import sys
import threading
import configparser

from client_manager.constants import DEFAULT_GAME_BUILD
from client_manager.errors import ClientConfigError
from client_manager.logger import setup_logger
from client_manager.models import DatasetConfig, NodeSettings
from client_manager.platform_utils import get_app_config_dir

logger = setup_logger()

CONFIG_PATH_ENV = "CLIENT_MANAGER_CONFIG"

NODE_SECTION = "Node"
DATASET_SECTION_PREFIX = "Dataset."


def get_config_path():
    """Get the path for storing configuration files"""
    override = os.environ.get(CONFIG_PATH_ENV)
    if override:
        return override
    return os.path.join(get_app_config_dir(), "config.ini")


def resource_path(relative_path):
    """Get absolute path to resource, works for dev and for PyInstaller"""
    try:
        base_path = sys._MEIPASS
    except Exception:
        base_path = os.path.abspath(".")
    return os.path.join(base_path, relative_path)


def _split_list(value: str):
    return [item.strip() for item in value.split(",") if item.strip()]


class ConfigManager(configparser.ConfigParser):
    _instance = None
    _lock = threading.Lock()

    def __new__(cls, *args, **kwargs):
        with cls._lock:
            if cls._instance is None:
                cls._instance = super(ConfigManager, cls).__new__(cls)
        return cls._instance

    def __init__(self):
        if not hasattr(self, "initialized"):
            # Keep option names case-sensitive, they mirror the dataset settings
            super().__init__()
            self.optionxform = str
            self.logger = setup_logger()
            self.config_path = get_config_path()
            self.read(self.config_path)

            # Initialize node section
            if not self.has_section(NODE_SECTION):
                self.add_section(NODE_SECTION)
                self[NODE_SECTION].update(
                    {
                        "DefaultDataset": "default",
                        "AutoStartClient": "0",
                        "BinPath": resource_path("bin"),
                        "PatchCatalog": "",
                    }
                )
                self.save()

            self.initialized = True

    def save(self):
        os.makedirs(os.path.dirname(os.path.abspath(self.config_path)), exist_ok=True)
        with open(self.config_path, "w") as configfile:
            self.write(configfile)

    def node_settings(self) -> NodeSettings:
        section = self[NODE_SECTION]
        try:
            return NodeSettings(
                default_dataset=section.get("DefaultDataset", "default"),
                auto_start_client=section.getint("AutoStartClient", 0),
                bin_path=section.get("BinPath", resource_path("bin")),
            )
        except ValueError as e:
            raise ClientConfigError(f"Invalid [{NODE_SECTION}] settings: {e}") from e

    def patch_catalog_path(self) -> str:
        return self[NODE_SECTION].get("PatchCatalog", "")

    def dataset_names(self):
        return [
            section[len(DATASET_SECTION_PREFIX):]
            for section in self.sections()
            if section.startswith(DATASET_SECTION_PREFIX)
        ]

    def get_dataset(self, name: str) -> DatasetConfig:
        section_name = f"{DATASET_SECTION_PREFIX}{name}"
        if not self.has_section(section_name):
            raise ClientConfigError(f"Unknown dataset: {name} (no [{section_name}] section)")

        section = self[section_name]
        client_path = section.get("ClientPath", "")
        if not client_path:
            raise ClientConfigError(f"Dataset {name} has no ClientPath configured")

        try:
            return DatasetConfig(
                name=name,
                client_path=client_path,
                client_patches=_split_list(section.get("ClientPatches", "")),
                dev_patch_letter=section.get("ClientDevPatchLetter", "A"),
                patch_use_locale=section.getboolean("ClientPatchUseLocale", False),
                game_build=section.get("DatasetGameBuild", DEFAULT_GAME_BUILD).strip(),
                patch_from_backup=section.getboolean("ClientPatchFromBackup", False),
            )
        except ValueError as e:
            raise ClientConfigError(f"Invalid settings for dataset {name}: {e}") from e

    def set_dataset(self, dataset: DatasetConfig):
        self.logger.debug(f"Saving settings for dataset {dataset.name}.")
        section_name = f"{DATASET_SECTION_PREFIX}{dataset.name}"
        if not self.has_section(section_name):
            self.add_section(section_name)
        self[section_name].update(
            {
                "ClientPath": dataset.client_path,
                "ClientPatches": ",".join(dataset.client_patches),
                "ClientDevPatchLetter": dataset.dev_patch_letter,
                "ClientPatchUseLocale": str(dataset.patch_use_locale).lower(),
                "DatasetGameBuild": dataset.game_build,
                "ClientPatchFromBackup": str(dataset.patch_from_backup).lower(),
            }
        )
        self.save()
