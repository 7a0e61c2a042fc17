from typing import Dict, Any, List

class ConfigMerger:
    def merge_dicts(self, dicts: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Deep merge dictionaries given highest priority first."""
        if not dicts:
            return {}

        result = dict(dicts[0])

        for d in dicts[1:]:
            if d:
                self._fill_missing(result, d)

        return result

    def _fill_missing(self, target: Dict[str, Any], source: Dict[str, Any]) -> None:
        """Copy keys from lower-priority ``source`` that ``target`` lacks."""
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                merged = dict(target[key])
                self._fill_missing(merged, value)
                target[key] = merged
            elif key not in target:
                target[key] = value
