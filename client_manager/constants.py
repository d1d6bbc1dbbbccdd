# Known-clean digest of the 3.3.5a (build 12340) client executable
CLEAN_CLIENT_MD5 = "45892bdedd0ad70aed4ccd22d9fb5984"

DEFAULT_GAME_BUILD = "12340"

# The extension module layout starts at this offset; everything after it is dropped
EXTENSION_TRUNCATE_OFFSET = 0x758C00

# Reserved patch category name that turns on the extension module
EXTENSION_PATCH_NAME = "client-extensions"

EXTENSION_DLL_NAME = "ClientExtensions.dll"

CLIENT_EXE_NAME = "Wow.exe"
CLIENT_EXE_BACKUP_NAME = "Wow.exe.clean"

REALMLIST_FILE_NAME = "realmlist.wtf"
DEFAULT_REALMLIST = "set realmlist localhost"
DEFAULT_CLIENT_IP = "127.0.0.1"

# Pause between two client launches of the same start request (seconds)
LAUNCH_INTERVAL = 0.2

# Overlay archives (MPQ patches) recognised when listing a client's Data tree
OVERLAY_NAME_PATTERN = r"patch-(?:[a-z]{4}-)?[a-z1-9]\.mpq"

# Folder written into directory-form overlays by the addon build
TSADDONS_FRAMEXML_PARTS = ("Interface", "FrameXML", "TSAddons")
