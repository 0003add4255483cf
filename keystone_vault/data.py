"""Secret records as fetched from the credential store.

Records are read-only: the vault borrows them from the store and never
mutates them. Only ``envelope`` is ever decrypted, and only ``url`` is read
by the domain matchers.
"""
import logging
from enum import Enum
from typing import Any, NamedTuple, Optional, Union
from collections.abc import Mapping, Sequence
import orjson
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from .exceptions import InvalidRecordError

logger = logging.getLogger('keystone.vault')


class SecretType(str, Enum):
    SSH = 'ssh'
    FTP = 'ftp'
    DB = 'db'
    CMS = 'cms'
    API = 'api'
    OTHER = 'other'


class SecretRecord(BaseModel):
    """SecretRecord.

    One stored secret. Store rows name the envelope column
    ``encrypted_password`` and may carry the joined client as
    ``clients: {"name": ...}``; both shapes are accepted.
    """
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra='ignore',
    )

    id: str
    title: str
    envelope: str = Field(alias='encrypted_password', repr=False)
    type: SecretType = SecretType.OTHER
    username: Optional[str] = None
    url: Optional[str] = None
    client_name: Optional[str] = None
    host: Optional[str] = None
    port: Optional[int] = None
    db_name: Optional[str] = None
    tags: tuple[str, ...] = ()
    notes: Optional[str] = None

    @field_validator('id', mode='before')
    @classmethod
    def _id_as_str(cls, v: Any) -> Any:
        # asyncpg returns uuid.UUID for uuid columns
        return str(v) if v is not None and not isinstance(v, str) else v

    @field_validator('tags', mode='before')
    @classmethod
    def _null_tags(cls, v: Any) -> Any:
        return () if v is None else v

    @model_validator(mode='before')
    @classmethod
    def _flatten_client(cls, data: Any) -> Any:
        if isinstance(data, Mapping) and 'client_name' not in data:
            client = data.get('clients')
            if isinstance(client, Mapping) and client.get('name'):
                data = {**data, 'client_name': client['name']}
        return data

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> 'SecretRecord':
        """Validate one store row.

        Raises:
            InvalidRecordError: the row is missing or has invalid columns.
        """
        try:
            return cls.model_validate(dict(row))
        except ValidationError as err:
            fields = ', '.join(
                str(e['loc'][0]) for e in err.errors() if e.get('loc')
            )
            raise InvalidRecordError(
                f'Invalid secret row id={row.get("id")}: {fields}'
            ) from err


class Credentials(NamedTuple):
    """Username/password pair handed to autofill."""
    username: Optional[str]
    password: str

    def __repr__(self) -> str:
        return f'Credentials(username={self.username!r}, password=***)'


def parse_records(
    payload: Union[bytes, str, Sequence[Mapping[str, Any]]],
    *,
    skip_invalid: bool = False,
) -> list[SecretRecord]:
    """Build SecretRecords from store rows or a raw JSON array payload.

    With ``skip_invalid``, unreadable rows are logged and left out instead
    of failing the whole payload.

    Raises:
        ValueError: payload is not valid JSON or not a JSON array.
        InvalidRecordError: a row is missing or has invalid columns.
    """
    if isinstance(payload, (bytes, str)):
        try:
            payload = orjson.loads(payload)
        except orjson.JSONDecodeError as err:
            raise ValueError(f'Invalid secrets payload: {err}') from err
        if not isinstance(payload, list):
            raise ValueError('Secrets payload must be a JSON array')
    records = []
    for row in payload:
        try:
            records.append(SecretRecord.from_row(row))
        except InvalidRecordError as err:
            if not skip_invalid:
                raise
            logger.error('Skipping unreadable secret row: %s', err)
    return records

