from .catalog import get_config, supported_index_types
from .dataset import generate_dataset
from .encoding import EncodingError, encode_index_params, encode_type_params, generate_params
from .features import FeatureTable
from .harness import run_case
from .metrics import FLT_MAX, count_distance
from .scalar import ValueKind, gen_params, get_index_types
from .types import Dataset, FieldSchema, GeneratedDataset, QueryResult, ScalarTestParams, ValidationReport
from .validation import ValidationError, validate

__all__ = [
    "Dataset",
    "EncodingError",
    "FLT_MAX",
    "FeatureTable",
    "FieldSchema",
    "GeneratedDataset",
    "QueryResult",
    "ScalarTestParams",
    "ValidationError",
    "ValidationReport",
    "ValueKind",
    "count_distance",
    "encode_index_params",
    "encode_type_params",
    "gen_params",
    "generate_dataset",
    "generate_params",
    "get_config",
    "get_index_types",
    "run_case",
    "supported_index_types",
    "validate",
]
