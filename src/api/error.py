from typing import Dict, Optional
from libs.result import Error


class ClientError(Exception):
    def __init__(self, base_error: Error, status_code: int = 400, headers: Optional[Dict[str, str]] = None):
        self.base_error = base_error
        self.status_code = status_code
        self.headers = headers
        super().__init__(base_error.message)


class ServerError(Exception):
    def __init__(self, base_error: Error):
        self.base_error = base_error
        super().__init__(base_error.message)
