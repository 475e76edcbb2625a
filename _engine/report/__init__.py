from .writer import extract_code_blocks, write_review_report, write_test_file
