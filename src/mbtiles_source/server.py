# %%
#|export
import contextlib
import logging
from typing import Optional, Union

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.responses import Response
from fastapi.staticfiles import StaticFiles

from .config import Config
from .core import MBTiles
from .errors import InvalidTile, TileNotFound
from .locator import Locator

logger = logging.getLogger(__name__)


def create_app(locator: Union[str, Locator], static_dir: Optional[str] = None) -> FastAPI:
    source = MBTiles(locator)

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI):
        await source.connect()
        try:
            yield
        finally:
            source.close()

    app = FastAPI(title="MBTiles Source", lifespan=lifespan)
    app.state.source = source

    if static_dir:
        app.mount("/static", StaticFiles(directory=static_dir), name="static")

    @app.get("/metadata")
    async def get_metadata():
        info = await source.get_info()
        return info.to_dict()

    @app.get("/tiles/{z}/{x}/{y}")
    async def get_tile(z: int, x: int, y: str):
        # Strip file extension if present
        try:
            xyz_y = int(y.split('.')[0])
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Invalid tile row {y!r}")

        logger.info(f"Tile request - XYZ:{z}/{x}/{xyz_y}")
        try:
            tile = await source.get_tile(x, xyz_y, z)
        except TileNotFound:
            raise HTTPException(status_code=404, detail="Tile not found")
        except InvalidTile as e:
            logger.error(f"Invalid tile data at {z}/{x}/{xyz_y}")
            raise HTTPException(status_code=500, detail=e.code)

        return Response(content=tile.content, headers=tile.headers)

    return app


def serve(config: Config) -> None:
    app = create_app(config.locator, static_dir=config.static_dir)
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level)
