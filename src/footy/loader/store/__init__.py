from .json import DatasetSpec, JsonDatasetStore, update_football_data_file

__all__ = ["DatasetSpec", "JsonDatasetStore", "update_football_data_file"]
