# /*
# Copyright 2026 The Grove Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Node recipes and the client -> recipe tables used by the control plane."""

from __future__ import annotations

from fleet_manager.components import lighthouse, prysm, teku
from fleet_manager.components.base import BeaconConfig, BeaconRecipe, ValidatorConfig, ValidatorRecipe
from fleet_manager.components.bootnode import Bootnode
from fleet_manager.components.execution import execution_node
from fleet_manager.spec import Client

BEACON_RECIPES: dict[Client, BeaconRecipe] = {
    Client.TEKU: teku.beacon,
    Client.LIGHTHOUSE: lighthouse.beacon,
    Client.PRYSM: prysm.beacon,
}

VALIDATOR_RECIPES: dict[Client, ValidatorRecipe] = {
    Client.TEKU: teku.validator,
    Client.LIGHTHOUSE: lighthouse.validator,
    Client.PRYSM: prysm.validator,
}

__all__ = [
    "BEACON_RECIPES",
    "VALIDATOR_RECIPES",
    "BeaconConfig",
    "BeaconRecipe",
    "Bootnode",
    "ValidatorConfig",
    "ValidatorRecipe",
    "execution_node",
]
