from __future__ import annotations

from pygame.math import Vector2
from pytest import approx

from flocksim.sim.core.config import PredatorReleaseConfig, SimulationConfig
from flocksim.sim.core.world import World


def _quiet_config(**overrides) -> SimulationConfig:
    values = dict(seed=11, agent_count=1, total_steps=10, predator_releases=[])
    values.update(overrides)
    return SimulationConfig(**values)


def test_seeding_is_deterministic_and_in_arena():
    config = SimulationConfig(seed=1234, agent_count=50, world_size=500.0)
    world_a = World(config)
    world_b = World(SimulationConfig(seed=1234, agent_count=50, world_size=500.0))

    assert [(a.position.x, a.position.y) for a in world_a.agents] == [
        (b.position.x, b.position.y) for b in world_b.agents
    ]
    for agent in world_a.agents:
        assert 0.0 <= agent.position.x <= 500.0
        assert 0.0 <= agent.position.y <= 500.0
        assert agent.heading.length() == approx(1.0)


def test_reset_restores_seeded_state():
    world = World(SimulationConfig(seed=3, agent_count=20, world_size=300.0, predator_releases=[]))
    seeded = world.frame()
    for _ in range(5):
        world.step()

    world.reset()

    assert world.tick == 0
    assert world.frame() == seeded


def test_headings_stay_unit_length():
    config = SimulationConfig(
        seed=21,
        agent_count=40,
        world_size=400.0,
        predator_releases=[PredatorReleaseConfig(tick=5)],
    )
    world = World(config)
    for _ in range(60):
        world.step()
        for agent in world.agents:
            assert agent.heading.length() == approx(1.0)
        for predator in world.predators:
            assert predator.heading.length() == approx(1.0)


def test_agent_distance_from_center_stays_bounded():
    config = _quiet_config(world_size=2048.0)
    world = World(config)
    agent = world.agents[0]
    agent.position = Vector2(1024.0, 1224.0)
    agent.heading = Vector2(1.0, 0.0)
    center = world.center

    max_distance = 0.0
    for _ in range(1500):
        world.step()
        max_distance = max(max_distance, (world.agents[0].position - center).length())

    assert max_distance > config.world_size / 3.0
    assert max_distance < config.world_size * 0.75


def test_predator_release_spawns_at_offsets_from_center():
    config = _quiet_config(
        world_size=1000.0,
        predator_releases=[PredatorReleaseConfig(tick=2, offsets=[(10.0, 0.0), (0.0, -20.0)])],
    )
    world = World(config)

    world.step()
    assert world.predators == []

    metrics = world.step()
    assert metrics.released == 2
    assert len(world.predators) == 2
    assert metrics.predators == 2


def test_kill_removes_exactly_one_agent():
    config = _quiet_config(
        agent_count=2,
        world_size=2048.0,
        predator_releases=[PredatorReleaseConfig(tick=1, offsets=[(0.0, 0.0)])],
    )
    world = World(config)
    center = world.center
    prey, bystander = world.agents
    prey.position = center + Vector2(3.0, 0.0)
    prey.heading = Vector2(1.0, 0.0)
    bystander.position = center + Vector2(-600.0, 0.0)
    bystander.heading = Vector2(-1.0, 0.0)

    metrics = world.step()

    assert metrics.kills == 1
    assert world.agents == [bystander]
    assert len(world.frame().agents) == 1
    assert not prey.alive


def _pair_world(update_mode: str) -> World:
    world = World(_quiet_config(agent_count=2, world_size=2048.0, update_mode=update_mode))
    first, second = world.agents
    first.position = Vector2(1000.0, 1000.0)
    first.heading = Vector2(0.0, 1.0)
    second.position = Vector2(1013.0, 1000.0)
    second.heading = Vector2(0.0, 1.0)
    return world


def test_sequential_update_lets_later_agents_see_earlier_moves():
    world = _pair_world("sequential")

    world.step()

    first, second = world.agents
    assert first.position.x < 1000.0
    # The first agent has already moved out of separation range, so the
    # second is drawn toward it instead of pushed away.
    assert second.position.x < 1013.0


def test_simultaneous_update_reads_prior_positions():
    world = _pair_world("simultaneous")

    world.step()

    first, second = world.agents
    assert first.position.x < 1000.0
    assert second.position.x > 1013.0


def _chase_world(update_mode: str) -> World:
    world = World(_quiet_config(world_size=2048.0, update_mode=update_mode))
    prey = world.agents[0]
    prey.position = Vector2(1000.0, 1000.0)
    prey.heading = Vector2(1.0, 0.0)
    world.add_predator(Vector2(1000.0, 900.0), Vector2(0.0, 1.0))
    return world


def test_sequential_predators_chase_agents_where_they_moved_this_tick():
    world = _chase_world("sequential")

    world.step()

    prey = world.agents[0]
    hunter = world.predators[0]
    assert (prey.position.x, prey.position.y) == approx((1005.0, 1000.0))
    toward_moved_prey = (Vector2(1005.0, 1000.0) - Vector2(1000.0, 900.0)).normalize()
    expected = (Vector2(0.0, 1.0) + toward_moved_prey * 2.0).normalize()
    assert (hunter.heading.x, hunter.heading.y) == approx((expected.x, expected.y))
    assert (hunter.position.x, hunter.position.y) == approx((1000.0 + expected.x * 7.0, 900.0 + expected.y * 7.0))


def test_simultaneous_predators_chase_prior_agent_positions():
    world = _chase_world("simultaneous")

    world.step()

    hunter = world.predators[0]
    assert (hunter.heading.x, hunter.heading.y) == approx((0.0, 1.0))
    assert (hunter.position.x, hunter.position.y) == approx((1000.0, 907.0))


def test_simultaneous_update_is_order_independent():
    config = SimulationConfig(
        seed=8, agent_count=30, world_size=300.0, update_mode="simultaneous", predator_releases=[]
    )
    forward = World(config)
    backward = World(SimulationConfig(
        seed=8, agent_count=30, world_size=300.0, update_mode="simultaneous", predator_releases=[]
    ))
    backward.agents.reverse()

    for _ in range(5):
        forward.step()
        backward.step()

    by_id = {agent.id: agent for agent in backward.agents}
    for agent in forward.agents:
        other = by_id[agent.id]
        assert agent.position.x == approx(other.position.x, rel=1e-9, abs=1e-9)
        assert agent.position.y == approx(other.position.y, rel=1e-9, abs=1e-9)


def test_frame_does_not_alias_live_entities():
    world = World(SimulationConfig(seed=4, agent_count=5, world_size=200.0, predator_releases=[]))
    frame = world.frame()
    before = [(pose.x, pose.y, pose.angle) for pose in frame.agents]

    for _ in range(3):
        world.step()

    assert [(pose.x, pose.y, pose.angle) for pose in frame.agents] == before
    assert frame.agents[0].position is not world.agents[0].position


def test_obstacles_appear_in_frames():
    from flocksim.sim.core.config import ObstacleConfig

    config = _quiet_config(obstacles=[ObstacleConfig(position=(50.0, 60.0), radius=10.0)])
    world = World(config)

    frame = world.frame()

    assert len(frame.obstacles) == 1
    assert (frame.obstacles[0].x, frame.obstacles[0].y) == (50.0, 60.0)
