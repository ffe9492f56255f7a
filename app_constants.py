APP_NAME = "QR Scan"

JOB_TYPES = ("scan", "rename")

# Status labels shown to users; keys match ResultStatus values.
STATUS_LABELS = {
    "QR_CODE_FOUND": "QR code found",
    "NO_FILE_ACCESS": "No file access or page missing",
    "NO_QR_CODE": "No QR code found",
}

INVALID_CODE_HELP = (
    "Only characters A-Z, a-z, 0-9, space, - and _ are allowed to prevent trouble "
    "with file names."
)

EXIT_OK = 0
EXIT_DESTINATION_UNAVAILABLE = 1
EXIT_INVALID_INPUT = 2
