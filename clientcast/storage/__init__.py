from .json_dump import (
    CLIENTS_FILENAME,
    DETAILS_FILENAME,
    SEND_FAILURES_FILENAME,
    load_client_details,
    save_client_details,
    save_clients,
    save_json,
    save_send_failures,
)

__all__ = [
    "CLIENTS_FILENAME",
    "DETAILS_FILENAME",
    "SEND_FAILURES_FILENAME",
    "load_client_details",
    "save_client_details",
    "save_clients",
    "save_json",
    "save_send_failures",
]
