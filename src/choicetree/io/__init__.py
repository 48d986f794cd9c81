from .config_loader import load_config
from .program_loader import load_program
from .report_writer import save_report_to_yaml

__all__ = ["load_config", "load_program", "save_report_to_yaml"]
