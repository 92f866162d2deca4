import random

import numpy as np
import pytest

from mapgen.grid import Grid
from mapgen.templates import Template, TemplateCatalog


@pytest.fixture
def cells():
    """Empty 33x21 (3v3) code array."""
    return np.zeros((33, 21), dtype=np.int8)


@pytest.fixture
def grid():
    return Grid(33, 21)


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def catalog():
    return TemplateCatalog()


@pytest.fixture
def single():
    return Template("single", [[1]], 1)
