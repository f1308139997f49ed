# Copyright 2019 Joan Puig
# See LICENSE for details


import os

import pytest


@pytest.fixture
def fit_folder(tmp_path):
    folder = tmp_path / 'fit'
    os.mkdir(str(folder))
    return str(folder)
