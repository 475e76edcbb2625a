from .engine import read_files
from .files_controller import get_dir_files, get_staged_diff, get_staged_files
