"""
CRUD Modal Controller
=====================

Create/edit form state for one entity. Validation failures stay local;
only a valid form reaches the API, and the modal closes only after the API
accepted the change.
"""

import logging

from .api_client import ApiError
from .logging_service import LoggingService
from .notifications import ERROR, SUCCESS
from .schemas import CREATE, EDIT

logger = logging.getLogger(__name__)

EMOJI = 'emoji'
UPLOAD = 'upload'

SECRET_FIELDS = ('password', 'confirmPassword')


class CrudModal:
    """
    Args:
        schema: EntitySchema for the entity family
        client: ResourceClient for the collection
        notifier: confirmation/notification gateway
        on_saved: called after a successful save (the list re-fetch)
        entity: the record being edited; None opens the modal in create mode
        upload_path: endpoint for icon files, enables the icon upload sub-mode
    """

    def __init__(self, schema, client, notifier, on_saved=None, entity=None,
                 upload_path=None, upload_field='icon'):
        self.schema = schema
        self.client = client
        self.notifier = notifier
        self.on_saved = on_saved
        self.entity = entity
        self.upload_path = upload_path
        self.upload_field = upload_field
        self.values = schema.defaults(entity)
        self.errors = {}
        self.is_open = True
        self.saved = None

    @property
    def mode(self):
        return EDIT if self.entity is not None else CREATE

    @property
    def title(self):
        label = self.schema.label.title()
        return f"Edit {label}" if self.mode == EDIT else f"Add {label}"

    def close(self):
        self.is_open = False
        self.entity = None

    def submit(self, form, upload=None):
        """
        Validate and save.

        ``upload`` is the file chosen in icon upload mode (anything with
        ``filename``/``stream``/``mimetype``); it is sent before the entity
        itself and its server path becomes the ``icon`` field.

        Returns True when the API accepted the change.
        """
        values = dict(self.values)
        values.update(dict(form))
        # Re-rendered forms never echo secrets back
        self.values = {k: ('' if k in SECRET_FIELDS else v) for k, v in values.items()}

        validated, errors = self.schema.validate(values, self.mode, self.entity)
        self.errors = errors
        if errors:
            return False

        payload = self.schema.to_payload(validated, self.mode, self.entity)
        label = self.schema.label

        if self._wants_upload(values, upload):
            icon_path = self._upload_icon(upload)
            if icon_path is None:
                return False
            payload['icon'] = icon_path

        try:
            if self.mode == CREATE:
                self.saved = self.client.create(payload)
            else:
                self.saved = self.client.update(self.entity.id, payload)
        except ApiError as e:
            LoggingService.error(label, f"Failed to save {label}", {
                'mode': self.mode,
                'status_code': e.status_code,
                'error': e.message,
            })
            self.notifier.notify(ERROR, e.message)
            return False

        verb = 'updated' if self.mode == EDIT else 'created'
        LoggingService.log_admin_action(label, f"{label} {verb}", {
            'id': self.entity.id if self.entity else (self.saved or {}).get('id'),
        })

        if self.on_saved:
            self.on_saved()
        self.close()
        self.notifier.notify(SUCCESS, f"{label.capitalize()} successfully {verb}")
        return True

    def _wants_upload(self, values, upload):
        if not self.upload_path or upload is None:
            return False
        if not getattr(upload, 'filename', None):
            return False
        return values.get('iconType') == UPLOAD

    def _upload_icon(self, upload):
        """Returns the stored file path, or None after reporting the failure"""
        try:
            result = self.client.upload(self.upload_path, self.upload_field, upload)
        except ApiError as e:
            logger.warning("Icon upload failed: %s", e.message)
            LoggingService.error(self.schema.label, "Icon upload failed", {'error': e.message})
            self.notifier.notify(ERROR, "Failed to upload the icon file")
            return None

        path = (result or {}).get('filePath')
        if not path:
            self.notifier.notify(ERROR, "Failed to upload the icon file")
            return None
        return path
