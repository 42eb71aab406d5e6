"""
Generic data insertion mixin for SQLAlchemy models
Provides dictionary round-tripping so models double as the per-entity
repositories used by the attestation core.
"""

from app import db
from datetime import datetime, date
from sqlalchemy import inspect
from app.logger import get_logger

logger = get_logger("asset_attestation.domain.core.data_insertion")

AUDIT_FIELDS = ('created_at', 'updated_at', 'created_by_id', 'updated_by_id')


class DataInsertionMixin:
    """
    Mixin that provides generic data insertion capabilities for SQLAlchemy models

    This mixin adds:
    - from_dict(): Build a model instance from a dictionary
    - to_dict(): Convert a model instance to a JSON-safe dictionary
    - create_from_dict(): Build and save a model instance
    - update_from_dict(): Apply a field patch to an existing instance
    - find_or_create_from_dict(): Lookup by unique fields before creating
    """

    @classmethod
    def column_keys(cls):
        return {c.key for c in inspect(cls).columns}

    @classmethod
    def from_dict(cls, data_dict, user_id=None, skip_fields=None):
        """
        Create a model instance from a dictionary

        Args:
            data_dict (dict): Dictionary containing model data
            user_id (int, optional): User ID for audit fields
            skip_fields (list, optional): Fields to skip during creation

        Returns:
            Model instance (not saved to database)
        """
        skip_fields = set(skip_fields or [])
        columns = cls.column_keys()

        filtered_data = {}
        for key, value in data_dict.items():
            if key not in columns or key in skip_fields:
                continue
            if key == 'password_hash':
                continue
            if key in ('created_at', 'updated_at') and value is None:
                continue
            filtered_data[key] = value

        instance = cls(**filtered_data)

        if 'password' in data_dict and hasattr(instance, 'set_password'):
            instance.set_password(data_dict['password'])

        if user_id is not None:
            if 'created_by_id' in columns and not getattr(instance, 'created_by_id', None):
                instance.created_by_id = user_id
            if 'updated_by_id' in columns:
                instance.updated_by_id = user_id

        return instance

    def to_dict(self, include_audit_fields=True, exclude=None):
        """
        Convert model instance to dictionary

        Args:
            include_audit_fields (bool): Whether to include audit fields
            exclude (iterable, optional): Column names to leave out

        Returns:
            dict: Dictionary representation of the model
        """
        exclude = set(exclude or [])
        result = {}

        for column in inspect(self.__class__).columns:
            if column.key in exclude or column.key == 'password_hash':
                continue
            if not include_audit_fields and column.key in AUDIT_FIELDS:
                continue

            value = getattr(self, column.key)
            if isinstance(value, (datetime, date)):
                result[column.key] = value.isoformat()
            else:
                result[column.key] = value

        return result

    @classmethod
    def create_from_dict(cls, data_dict, user_id=None, skip_fields=None, commit=True):
        """
        Create and save a model instance from dictionary

        Args:
            data_dict (dict): Dictionary containing model data
            user_id (int, optional): User ID for audit fields
            skip_fields (list, optional): Fields to skip during creation
            commit (bool): Whether to commit the transaction; when False the
                instance is flushed so its id is available

        Returns:
            Model instance (saved to database)
        """
        instance = cls.from_dict(data_dict, user_id, skip_fields)

        try:
            db.session.add(instance)
            if commit:
                db.session.commit()
                logger.info(f"Created {cls.__name__}: {instance}")
            else:
                db.session.flush()
            return instance
        except Exception as e:
            if commit:
                db.session.rollback()
            logger.error(f"Error creating {cls.__name__}: {e}")
            raise

    def update_from_dict(self, updates, user_id=None, allowed_fields=None):
        """
        Apply a field patch to this instance (not committed)

        Args:
            updates (dict): Field names and new values
            user_id (int, optional): User ID for the updated_by audit field
            allowed_fields (iterable, optional): Restrict the patch to these columns

        Returns:
            set: Names of the fields whose value changed
        """
        columns = self.column_keys()
        allowed = set(allowed_fields) if allowed_fields is not None else columns
        changed = set()

        for key, value in updates.items():
            if key not in columns or key not in allowed or key in AUDIT_FIELDS or key == 'id':
                continue
            if getattr(self, key) != value:
                setattr(self, key, value)
                changed.add(key)

        if changed and user_id is not None and 'updated_by_id' in columns:
            self.updated_by_id = user_id

        return changed

    @classmethod
    def find_or_create_from_dict(cls, data_dict, user_id=None, skip_fields=None,
                                 lookup_fields=None, commit=True):
        """
        Find existing instance or create new one from dictionary

        Args:
            data_dict (dict): Dictionary containing model data
            user_id (int, optional): User ID for audit fields
            skip_fields (list, optional): Fields to skip during creation
            lookup_fields (list, optional): Fields to use for lookup (default: unique fields)
            commit (bool): Whether to commit the transaction

        Returns:
            tuple: (instance, created) where created is boolean
        """
        if lookup_fields is None:
            mapper = inspect(cls)
            lookup_fields = [c.key for c in mapper.columns if c.unique and c.key in data_dict]

        lookup_data = {field: data_dict[field] for field in lookup_fields if field in data_dict}
        if not lookup_data:
            return cls.create_from_dict(data_dict, user_id, skip_fields, commit), True

        existing = cls.query.filter_by(**lookup_data).first()
        if existing:
            logger.info(f"Found existing {cls.__name__}: {existing}")
            return existing, False

        return cls.create_from_dict(data_dict, user_id, skip_fields, commit), True
