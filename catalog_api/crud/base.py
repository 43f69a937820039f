"""
Acceso a datos genérico para los modelos del catálogo.

Las escrituras confirman la transacción de inmediato: cada llamada es una
unidad de persistencia independiente.
"""
from typing import Any, Dict, Generic, Optional, Type, TypeVar, Union

from pydantic import BaseModel
from sqlalchemy.orm import Session

from catalog_api.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)


class CRUDBase(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """Operaciones por ID sobre un modelo con clave primaria entera."""

    def __init__(self, model: Type[ModelType]):
        self.model = model

    def get(self, db: Session, id: Optional[int]) -> Optional[ModelType]:
        """Registro con ese ID, o None (también si id es None)."""
        if id is None:
            return None
        return db.query(self.model).filter(self.model.id == id).first()

    def create(self, db: Session, *, obj_in: Union[CreateSchemaType, Dict[str, Any]]) -> ModelType:
        """
        Insertar un registro a partir de un schema o un dict de columnas.

        Los validadores del modelo (@validates) se ejecutan al construirlo.
        """
        values = obj_in if isinstance(obj_in, dict) else obj_in.model_dump()
        return self.save(db, self.model(**values))

    def update(
        self,
        db: Session,
        *,
        db_obj: ModelType,
        obj_in: Union[UpdateSchemaType, Dict[str, Any]]
    ) -> ModelType:
        """
        Aplicar cambios parciales; con un schema solo se usan los campos enviados.

        Las claves que no son atributos del modelo se ignoran.
        """
        changes = obj_in if isinstance(obj_in, dict) else obj_in.model_dump(exclude_unset=True)
        for field, value in changes.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)
        return self.save(db, db_obj)

    def save(self, db: Session, db_obj: ModelType) -> ModelType:
        """Confirmar un objeto nuevo o modificado y recargarlo."""
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def remove(self, db: Session, *, id: int) -> Optional[ModelType]:
        """Borrado físico; devuelve el objeto eliminado o None si no existía."""
        obj = self.get(db, id)
        if obj is not None:
            db.delete(obj)
            db.commit()
        return obj
