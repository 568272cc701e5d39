from .test_data import *
