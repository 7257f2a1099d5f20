import json
import os

from hook_finder.src.hook_finder.catalog import HookCatalog
from hook_finder.src.hook_finder.config import EMPTY_COMPANION_FILES, HOOKS_FILE, RUST_ANALYZER_DIR
from hook_finder.src.hook_finder.models.hook_models import HookRecord


# --- Pretty printing & JSON export ------------------------------------------

def print_summary(catalog: HookCatalog):
    """
    Human-friendly printout of what we found.
    """
    print(f"\n=== HOOKS ({len(catalog)}) ===")
    for record in catalog:
        print(f" - {record.hook_signature}")
        print(f"     in {record.method_class_name}.{record.method_signature}  "
              f"@ line {record.hook_line_invoke} of the method")

    print("\n=== HOOKS PER CLASS ===")
    for class_name, count in catalog.hooks_per_class().items():
        print(f" {class_name:<40} {count}")


def record_to_dict(record: HookRecord) -> dict:
    return {
        "HookSignature": record.hook_signature,
        "MethodSignature": record.method_signature,
        "MethodParameters": [
            {"Type": p.type, "Name": p.name} for p in record.method_parameters
        ],
        "MethodSourceCode": record.method_source_code,
        "ClassName": record.method_class_name,
        "HookLineInvoke": record.hook_line_invoke,
    }


def to_json(catalog: HookCatalog) -> str:
    """
    Serializes the catalog to JSON, in catalog order.
    """
    return json.dumps([record_to_dict(r) for r in catalog], indent=2)


def write_outputs(catalog: HookCatalog, output_dir: str) -> str:
    """
    Writes hooks.json (plus the empty companion files the template expects)
    into <output_dir>/.rust-analyzer and returns the hooks.json path.
    """
    analyzer_dir = os.path.join(output_dir, RUST_ANALYZER_DIR)
    os.makedirs(analyzer_dir, exist_ok=True)

    hooks_path = os.path.join(analyzer_dir, HOOKS_FILE)
    with open(hooks_path, "w", encoding="utf-8") as f:
        f.write(to_json(catalog))
    for name in EMPTY_COMPANION_FILES:
        with open(os.path.join(analyzer_dir, name), "w", encoding="utf-8") as f:
            f.write("[]")
    return hooks_path
