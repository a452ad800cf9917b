from actorgate.testing import test_registry

from .tests import primitives, coordinator, scenarios, gates, fetch, config

test_registry.register_module("actorgate.primitives", primitives)
test_registry.register_module("actorgate.coordinator", coordinator)
test_registry.register_module("actorgate.scenarios", scenarios)
test_registry.register_module("actorgate.gates", gates)
test_registry.register_module("actorgate.fetch", fetch)
test_registry.register_module("actorgate.config", config)
