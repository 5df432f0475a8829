# =============================================================================
# utils/csv_utils.py - CSV utilities
# =============================================================================

import csv
from typing import List, Dict, Any, Optional, Tuple
import logging

from core.exceptions import InputError
from core.models import InputRecord, INPUT_FIELDS

# Lower-cased header -> canonical column name
CANONICAL_COLUMNS = {name.lower(): name for name in INPUT_FIELDS}


class CSVHandler:
    """Utilities for reading and writing CSV files"""

    @staticmethod
    def read_csv(file_path: str, encoding: str = 'utf-8-sig',
                 delimiter: str = ',') -> Tuple[List[Dict[str, Any]], List[str]]:
        """Read CSV file and return list of dictionaries plus the header row

        Raises:
            InputError: If the file is missing or cannot be parsed
        """
        logger = logging.getLogger(__name__)

        try:
            with open(file_path, 'r', newline='', encoding=encoding) as file:
                dict_reader = csv.DictReader(file, delimiter=delimiter)
                headers = list(dict_reader.fieldnames or [])
                data = list(dict_reader)

            logger.debug(f"CSV Headers: {headers}")
            logger.info(f"Successfully read {len(data)} records from {file_path}")
            return data, headers

        except FileNotFoundError:
            logger.error(f"Input file {file_path} not found")
            raise InputError(f"Input file not found: {file_path}") from None
        except (OSError, UnicodeDecodeError, csv.Error) as e:
            logger.error(f"Error reading CSV: {e}")
            raise InputError(f"Could not read {file_path}: {e}") from e

    @staticmethod
    def normalize_headers(row: Dict[str, Any]) -> Dict[str, Any]:
        """Map headers onto canonical column names, ignoring case and spacing"""
        normalized = {}
        for key, value in row.items():
            if key is None:
                continue
            clean_key = key.strip().lstrip('\ufeff')
            canonical = CANONICAL_COLUMNS.get(clean_key.lower().replace(' ', '').replace('_', ''), clean_key)
            normalized[canonical] = value.strip() if isinstance(value, str) else value
        return normalized

    @classmethod
    def read_records(cls, file_path: str, **kwargs) -> List[InputRecord]:
        """Read user records, trimming values and canonicalizing headers"""
        data, headers = cls.read_csv(file_path, **kwargs)
        if not headers:
            raise InputError(f"Input file {file_path} is empty")
        return [InputRecord.from_row(cls.normalize_headers(row)) for row in data]

    @staticmethod
    def write_csv(data: List[Dict[str, Any]], output_path: str,
                  fieldnames: Optional[List[str]] = None) -> None:
        """Write data to CSV file"""
        logger = logging.getLogger(__name__)

        if not data:
            logger.warning("No data to write")
            return

        if fieldnames is None:
            fieldnames = list(data[0].keys())

        try:
            with open(output_path, 'w', newline='', encoding='utf-8') as file:
                writer = csv.DictWriter(file, fieldnames=fieldnames, extrasaction='ignore')
                writer.writeheader()
                writer.writerows(data)

            logger.info(f"Successfully wrote {len(data)} records to {output_path}")

        except Exception as e:
            logger.error(f"Error writing CSV: {e}")
            raise
