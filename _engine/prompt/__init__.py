from .builder import TEMPLATES, generate_prompt, read_file_content
from .code_picker import split_diff, split_into_units
