from .spinner import ReviewSpinner
