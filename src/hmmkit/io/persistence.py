"""
Model persistence and metadata storage.

Models are serialized with joblib. ``ModelPersistence`` manages a directory
holding ``<name>.pkl`` model files next to ``<name>_meta.json`` metadata
files validated against a JSON schema.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Optional, Tuple, Union

import joblib
import jsonschema
import numpy as np

from ..hmm import HmmBase, InputHmm
from ..exceptions import ModelPersistenceError
from ..logger import get_logger

logger = get_logger(__name__)


# JSON schema for model metadata validation
METADATA_SCHEMA = {
    "type": "object",
    "properties": {
        "name": {
            "type": "string",
            "minLength": 1,
            "description": "Model name"
        },
        "model_class": {
            "type": "string",
            "enum": ["Hmm", "InputHmm"],
            "description": "Model variant"
        },
        "n_states": {
            "type": "integer",
            "minimum": 1,
            "description": "Number of hidden states"
        },
        "opdf_class": {
            "type": "string",
            "description": "Emission distribution class"
        },
        "inputs": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Input values of an input-driven model"
        },
        "saved_at": {
            "type": "string",
            "description": "ISO timestamp"
        },
        "training": {
            "type": "object",
            "description": "Training statistics (optional)"
        }
    },
    "required": ["name", "model_class", "n_states"],
    "additionalProperties": True
}


def write_hmm(stream: Union[BinaryIO, str, Path], hmm: HmmBase, compress: int = 3) -> None:
    """Serialize a model to a binary stream or path."""
    try:
        joblib.dump(hmm, stream, compress=compress)
    except Exception as e:
        raise ModelPersistenceError(f"Failed to write model: {str(e)}")


def read_hmm(stream: Union[BinaryIO, str, Path]) -> HmmBase:
    """
    Deserialize a model written by ``write_hmm``.

    Raises:
        ModelPersistenceError: If the stream cannot be read or holds no model
    """
    try:
        hmm = joblib.load(stream)
    except Exception as e:
        raise ModelPersistenceError(f"Failed to read model: {str(e)}")

    if not isinstance(hmm, HmmBase):
        raise ModelPersistenceError(f"Loaded object is not a model: {type(hmm).__name__}")
    return hmm


class ModelPersistence:
    """
    Handles model serialization, deserialization, and metadata management.

    Provides functionality to save and load models with their associated
    metadata in a single directory.
    """

    def __init__(self, models_dir: str = "models"):
        """
        Initialize ModelPersistence with target directory.

        Args:
            models_dir: Directory to store models and metadata (default: "models")
        """
        self.models_dir = Path(models_dir)
        self.models_dir.mkdir(parents=True, exist_ok=True)

        logger.debug(f"ModelPersistence initialized: {self.models_dir}")

    def _paths(self, name: str) -> Tuple[Path, Path]:
        safe_name = self._sanitize_filename(name)
        if not safe_name:
            raise ModelPersistenceError(f"Invalid model name: {name!r}")
        return self.models_dir / f"{safe_name}.pkl", self.models_dir / f"{safe_name}_meta.json"

    def save(self,
             name: str,
             hmm: HmmBase,
             metadata: Optional[Dict[str, Any]] = None,
             overwrite: bool = False) -> Tuple[str, str]:
        """
        Save a model and its metadata to disk.

        Args:
            name: Model name
            hmm: Model to save
            metadata: Extra metadata (training statistics, notes)
            overwrite: Whether to overwrite existing files (default: False)

        Returns:
            Tuple of (model_path, metadata_path) for saved files

        Raises:
            ModelPersistenceError: If saving fails or files exist without overwrite
        """
        try:
            model_path, metadata_path = self._paths(name)

            if not overwrite:
                if model_path.exists():
                    raise ModelPersistenceError(f"Model file already exists: {model_path}")
                if metadata_path.exists():
                    raise ModelPersistenceError(f"Metadata file already exists: {metadata_path}")

            serializable_metadata = self._prepare_metadata_for_serialization(metadata or {})
            serializable_metadata.update(self._describe(name, hmm))
            serializable_metadata['saved_at'] = datetime.now().isoformat()

            jsonschema.validate(serializable_metadata, METADATA_SCHEMA)

            logger.debug(f"Saving model to: {model_path}")
            write_hmm(model_path, hmm)

            logger.debug(f"Saving metadata to: {metadata_path}")
            with open(metadata_path, 'w', encoding='utf-8') as f:
                json.dump(serializable_metadata, f, indent=2, ensure_ascii=False)

            logger.info(f"Saved model {name}: {model_path}")
            return str(model_path), str(metadata_path)

        except ModelPersistenceError:
            raise
        except jsonschema.ValidationError as e:
            raise ModelPersistenceError(f"Metadata validation failed for model {name}: {e.message}")
        except Exception as e:
            raise ModelPersistenceError(f"Failed to save model {name}: {str(e)}")

    def load(self, name: str) -> Tuple[HmmBase, Dict[str, Any]]:
        """
        Load a model and its metadata from disk.

        Returns:
            Tuple of (model, metadata)

        Raises:
            ModelPersistenceError: If loading fails, files are missing or metadata is inconsistent
        """
        try:
            model_path, metadata_path = self._paths(name)

            if not model_path.exists():
                raise ModelPersistenceError(f"Model file not found: {model_path}")
            if not metadata_path.exists():
                raise ModelPersistenceError(f"Metadata file not found: {metadata_path}")

            logger.debug(f"Loading model from: {model_path}")
            hmm = read_hmm(model_path)

            with open(metadata_path, 'r', encoding='utf-8') as f:
                metadata = json.load(f)

            try:
                jsonschema.validate(metadata, METADATA_SCHEMA)
            except jsonschema.ValidationError as e:
                raise ModelPersistenceError(f"Metadata validation failed for {metadata_path}: {e.message}")

            self._validate_model_metadata_consistency(hmm, metadata)

            logger.info(f"Loaded model {name}")
            return hmm, metadata

        except ModelPersistenceError:
            raise
        except json.JSONDecodeError as e:
            raise ModelPersistenceError(f"Invalid JSON in metadata file for model {name}: {str(e)}")
        except Exception as e:
            raise ModelPersistenceError(f"Failed to load model {name}: {str(e)}")

    def list_models(self) -> List[Dict[str, Any]]:
        """
        List stored models with their basic information.

        Returns:
            List of dictionaries with model information
        """
        models_info = []
        for model_file in sorted(self.models_dir.glob("*.pkl")):
            name = model_file.stem
            metadata_file = self.models_dir / f"{name}_meta.json"

            info = {
                'name': name,
                'model_file': str(model_file),
                'metadata_exists': metadata_file.exists(),
                'model_size_mb': model_file.stat().st_size / (1024 * 1024)
            }

            if metadata_file.exists():
                try:
                    with open(metadata_file, 'r', encoding='utf-8') as f:
                        metadata = json.load(f)
                    info.update({
                        'model_class': metadata.get('model_class', 'unknown'),
                        'n_states': metadata.get('n_states', 'unknown'),
                        'saved_at': metadata.get('saved_at', 'unknown')
                    })
                except (OSError, json.JSONDecodeError) as e:
                    logger.warning(f"Unreadable metadata {metadata_file}: {e}")
                    info['metadata_error'] = True

            models_info.append(info)

        return models_info

    def delete(self, name: str) -> bool:
        """
        Delete the model and metadata files of a model.

        Returns:
            True if any file was deleted, False otherwise
        """
        model_path, metadata_path = self._paths(name)

        deleted_files = []
        for path in (model_path, metadata_path):
            if path.exists():
                path.unlink()
                deleted_files.append(str(path))

        if deleted_files:
            logger.info(f"Deleted files for model {name}: {deleted_files}")
            return True

        logger.warning(f"No files found to delete for model: {name}")
        return False

    def _sanitize_filename(self, name: str) -> str:
        """
        Sanitize a model name for use as filename.

        Args:
            name: Original model name

        Returns:
            Lowercase string of alphanumerics and underscores
        """
        safe_name = name.replace(' ', '_').replace('-', '_')
        safe_name = ''.join(c for c in safe_name if c.isalnum() or c == '_')
        return safe_name.lower()

    @staticmethod
    def _describe(name: str, hmm: HmmBase) -> Dict[str, Any]:
        opdfs = hmm.all_opdfs() if isinstance(hmm, InputHmm) else list(hmm.opdfs)
        description = {
            'name': name,
            'model_class': hmm.__class__.__name__,
            'n_states': int(hmm.n_states),
            'opdf_class': opdfs[0].__class__.__name__
        }
        if isinstance(hmm, InputHmm):
            description['inputs'] = [str(value) for value in hmm.inputs]
        return description

    def _prepare_metadata_for_serialization(self, metadata: Dict[str, Any]) -> Dict[str, Any]:
        """
        Prepare metadata dictionary for JSON serialization.

        Converts numpy arrays and scalars to plain Python values.
        """
        serializable = {}

        for key, value in metadata.items():
            if isinstance(value, np.ndarray):
                serializable[key] = value.tolist()
            elif isinstance(value, np.integer):
                serializable[key] = int(value)
            elif isinstance(value, np.floating):
                serializable[key] = float(value)
            elif isinstance(value, dict):
                serializable[key] = self._prepare_metadata_for_serialization(value)
            elif isinstance(value, list):
                serializable[key] = [
                    item.tolist() if isinstance(item, np.ndarray) else
                    int(item) if isinstance(item, np.integer) else
                    float(item) if isinstance(item, np.floating) else
                    item for item in value
                ]
            else:
                serializable[key] = value

        return serializable

    def _validate_model_metadata_consistency(self, hmm: HmmBase, metadata: Dict[str, Any]):
        """
        Validate that a loaded model is consistent with its metadata.

        Raises:
            ModelPersistenceError: If inconsistencies are found
        """
        if metadata.get('model_class') != hmm.__class__.__name__:
            raise ModelPersistenceError(
                f"Model class mismatch: metadata={metadata.get('model_class')}, "
                f"model={hmm.__class__.__name__}"
            )

        if metadata.get('n_states') != hmm.n_states:
            raise ModelPersistenceError(
                f"Model n_states mismatch: metadata={metadata.get('n_states')}, "
                f"model={hmm.n_states}"
            )

        try:
            hmm.validate_stochastic_matrices()
        except Exception as e:
            raise ModelPersistenceError(f"Loaded model has invalid stochastic matrices: {e}")
