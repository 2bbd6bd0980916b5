"""
Backend Flask endpoints for the project dashboard webapp.

Provides three endpoints:
- /get-tasks: Build classified tasks, summary and table rows from a dataset
- /get-fields: Describe dataset columns, role options and auto-match suggestions
- /get-config: Return the normalized persisted configuration
"""

import dataiku
from dataiku.customwebapp import *
from flask import request
import json
import traceback
import logging

# Import our dashboard logic
from projectdashboard.dashboard_config import (
    normalize_config, parse_config_param, persisted_key, select_table
)
from projectdashboard.field_matcher import (
    MATCHABLE_ROLES, apply_auto_match, get_date_field_options, get_text_field_options
)
from projectdashboard.record_source import (
    DEFAULT_MAX_RECORDS, records_from_dataframe, fields_from_schema
)
from projectdashboard.task_builder import TaskBuilder
from projectdashboard.task_view import build_dashboard_payload, DEFAULT_LANGUAGE
from projectdashboard.value_normalizer import current_time_ms

logger = logging.getLogger(__name__)
logger.info("Project dashboard backend module loading...")


def _error(code, message, status, details=None):
    """Error response in the shape the frontend expects."""
    body = {'error': {'code': code, 'message': message}}
    if details is not None:
        body['error']['details'] = details
    return json.dumps(body), status


def _read_request_config():
    """Persisted config from the webapp, overlaid with any config sent by the frontend."""
    persisted = get_webapp_config() or {}
    incoming = parse_config_param(request.args.get('config'))
    merged = dict(persisted)
    merged.update(incoming)
    return merged


@app.route('/get-tasks')
def get_tasks():
    """
    Build the dashboard payload for the configured dataset.

    Every call recomputes from the dataset; nothing is cached between calls.
    """
    logger.info("ENTER /get-tasks")
    try:
        try:
            raw_config = _read_request_config()
            now_param = request.args.get('now')
            now = int(now_param) if now_param else current_time_ms()
            max_records = int(raw_config.get('maxRecords', DEFAULT_MAX_RECORDS))
        except (ValueError, TypeError) as e:
            return _error('INVALID_CONFIGURATION', 'Invalid configuration parameters.', 400, {'error': str(e)})

        language = request.args.get('language') or raw_config.get('language') or DEFAULT_LANGUAGE
        config = normalize_config(raw_config)
        mapping = config.mapping

        # Incomplete mapping is an empty state, not an error
        if not mapping.is_complete():
            logger.info(f"Configuration incomplete: {', '.join(mapping.missing_roles())}")
            result = TaskBuilder(mapping).build([], now)
            return json.dumps(build_dashboard_payload([], config, now, language, result['metadata']))

        logger.info(f"Reading dataset: {mapping.table_id}")
        try:
            df = dataiku.Dataset(mapping.table_id).get_dataframe(limit=max_records if max_records > 0 else None)
        except Exception as e:
            logger.error(f"Failed to read dataset: {e}")
            return _error(
                'DATASET_NOT_FOUND',
                f"Dataset '{mapping.table_id}' not found or access denied.",
                400,
                {'error': str(e)}
            )

        records = records_from_dataframe(df, raw_config.get('idColumn'), max_records)

        builder = TaskBuilder(mapping)
        result = builder.build(records, now)
        payload = build_dashboard_payload(result['tasks'], config, now, language, result['metadata'])

        logger.info(
            f"Built {result['metadata']['displayedRows']} tasks "
            f"({result['metadata']['skippedRows']} skipped)"
        )
        return json.dumps(payload)

    except Exception as e:
        logger.error(f"Error in get-tasks: {e}")
        logger.error(traceback.format_exc())
        return _error('INTERNAL_ERROR', f'Internal error: {str(e)}', 500, {'traceback': traceback.format_exc()})


@app.route('/get-fields')
def get_fields():
    """
    Describe the selected dataset's columns for the role pickers.

    Returns field descriptors, the options offered for text and date roles,
    keyword-based suggestions for roles that are still unmapped, and the
    config with those suggestions filled in. A `tableId` argument switches
    table, which clears the previous table's field mappings first.
    """
    try:
        try:
            raw_config = _read_request_config()
        except (ValueError, TypeError) as e:
            return _error('INVALID_CONFIGURATION', 'Invalid configuration parameters.', 400, {'error': str(e)})

        config = select_table(normalize_config(raw_config), request.args.get('tableId'))
        table_id = config.mapping.table_id
        if not table_id:
            return _error('DATASET_NOT_SPECIFIED', 'No dataset selected. Please select a dataset.', 400)

        try:
            schema = dataiku.Dataset(table_id).read_schema()
        except Exception as e:
            logger.error(f"Failed to read schema of '{table_id}': {e}")
            return _error(
                'DATASET_NOT_FOUND',
                f"Dataset '{table_id}' not found or access denied.",
                400,
                {'error': str(e)}
            )

        fields = fields_from_schema(schema)
        matched = config.with_mapping(apply_auto_match(fields, config.mapping))
        suggestions = {
            persisted_key(role): getattr(matched.mapping, role)
            for role in MATCHABLE_ROLES
            if getattr(matched.mapping, role) != getattr(config.mapping, role)
        }
        return json.dumps({
            'fields': [f.to_dict() for f in fields],
            'textOptions': [f.id for f in get_text_field_options(fields)],
            'dateOptions': [f.id for f in get_date_field_options(fields)],
            'suggestions': suggestions,
            'config': matched.to_dict(),
        })

    except Exception as e:
        logger.error(f"Error in get-fields: {e}")
        logger.error(traceback.format_exc())
        return _error('INTERNAL_ERROR', f'Internal error: {str(e)}', 500)


@app.route('/get-config')
def get_config():
    """
    Return the persisted configuration merged with defaults.

    Returns:
        Complete camelCase config as JSON
    """
    try:
        config = normalize_config(get_webapp_config())
        return json.dumps(config.to_dict())

    except Exception as e:
        logger.error(f"Error in get-config: {e}")
        logger.error(traceback.format_exc())
        return str(e), 500
