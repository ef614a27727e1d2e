# %%
#|export
from dataclasses import dataclass
from typing import Optional

@dataclass
class Config:
    locator: str
    port: int = 8765
    host: str = "127.0.0.1"
    static_dir: Optional[str] = None
    log_level: str = "info"
