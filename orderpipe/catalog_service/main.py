# orderpipe/catalog_service/main.py
"""
Development catalog service. Serves the catalog tables over HTTP for
HttpCatalogClient; deleted rows are returned with their tombstone set.
"""
from fastapi import FastAPI, Depends, HTTPException
from sqlalchemy.orm import Session

from orderpipe.data.database import get_db
from orderpipe.domain.schemas import MenuInfoOut, StoreInfoOut
from orderpipe.services.catalog_gateway import SqlCatalogGateway


def create_catalog_app() -> FastAPI:
    app = FastAPI(title="Catalog Service (dev)")

    @app.get("/stores/{store_id}", response_model=StoreInfoOut)
    def get_store(store_id: int, db: Session = Depends(get_db)):
        store = SqlCatalogGateway(db).get_store(store_id)
        if not store:
            raise HTTPException(status_code=404, detail="Store not found")
        return store

    @app.get("/menus/{menu_id}", response_model=MenuInfoOut)
    def get_menu(menu_id: int, db: Session = Depends(get_db)):
        menu = SqlCatalogGateway(db).get_menu(menu_id)
        if not menu:
            raise HTTPException(status_code=404, detail="Menu not found")
        return menu

    return app


app = create_catalog_app()
