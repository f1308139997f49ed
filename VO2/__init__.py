# Copyright 2019 Joan Puig
# See LICENSE for details
