import pytest
from wsn_sim.cluster import ClusterMeshDev
from wsn_sim.device import Device
from wsn_sim.mesh import MeshWSN, build_network
from wsn_sim.power import BatteryProfile
from wsn_sim.sim_env import ConfigurationError, SimEnv
from wsn_sim.topology import Connection


def test_counters_only_change_through_log_calls(mesh):
    mesh.log_transmit()
    mesh.log_transmit()
    mesh.log_receive()
    mesh.log_corruption()
    mesh.log_cluster_head(None)
    assert (mesh.tx_count, mesh.rx_count, mesh.corrupted_count, mesh.ch_count) == (2, 1, 1, 1)


def test_single_idle_device_reports_no_data(mesh):
    Device(mesh)
    stats = mesh.compute_statistics()
    assert stats.device_count == 1
    assert stats.loners == 1
    assert stats.ch_rate == 0.0
    assert stats.rx_per_tx is None
    assert stats.corruption_rate is None
    assert stats.symmetric_rate is None
    assert stats.max_ch_subs is None
    assert stats.avg_ch_subs is None
    assert stats.useless_chs == 0
    assert stats.avg_usage_mAh is None
    assert stats.first_death is None and stats.last_death is None


def test_one_head_one_symmetric_subscriber(mesh):
    a = ClusterMeshDev(mesh, 0, 0)
    b = ClusterMeshDev(mesh, 5, 0)
    a.become_cluster_head()
    mesh.set_connections([(b, a, True)])

    stats = mesh.compute_statistics()
    assert stats.cluster_heads == 1
    assert stats.ch_rate == pytest.approx(0.5)
    assert stats.symmetric_rate == pytest.approx(1.0)
    assert stats.ch_subscribers == {a.index: 1}
    assert stats.max_ch_subs == 1
    assert stats.avg_ch_subs == pytest.approx(1.0)
    assert stats.useless_chs == 0


def test_head_without_subscribers_is_useless(mesh):
    a = ClusterMeshDev(mesh, 0, 0)
    b = ClusterMeshDev(mesh, 5, 0)
    c = ClusterMeshDev(mesh, 50, 50)
    a.become_cluster_head()
    c.become_cluster_head()
    mesh.set_connections([(b, a, False)])

    stats = mesh.compute_statistics()
    assert stats.useless_chs == 1
    assert stats.symmetric_rate == 0.0
    assert stats.avg_ch_subs == pytest.approx(0.5)


def test_election_is_logged_once(mesh):
    a = ClusterMeshDev(mesh, 0, 0)
    a.become_cluster_head()
    a.become_cluster_head()
    assert mesh.ch_count == 1


def test_empty_network_is_configuration_error(mesh):
    with pytest.raises(ConfigurationError):
        mesh.compute_statistics()
    with pytest.raises(ConfigurationError):
        build_network(n_devices=0)


def test_stepping_an_empty_network_fails_at_once():
    env = SimEnv()
    MeshWSN(env=env, seed=0)
    with pytest.raises(ConfigurationError):
        env.step()
    assert env.get_timestamp() == 1


def test_supplied_connections_survive_round_boundaries(mesh):
    a = ClusterMeshDev(mesh, 0, 0)
    b = ClusterMeshDev(mesh, 80, 80)  # out of range, never subscribes
    mesh.set_connections([(b, a, True)])
    mesh.env.step(mesh.interval)
    assert mesh.connections == [Connection(b.index, a.index, True)]
    assert mesh.compute_statistics().connections == 1

    mesh.update_connections()
    assert mesh.connections == []
    mesh.env.step(mesh.interval)
    assert mesh.compute_statistics().connections == 0


def test_power_statistics_after_stabilization():
    wsn = build_network(n_devices=10, area_width=40, area_height=40, seed=5,
                        interval=20, stabilization=100)
    wsn.env.run(400)
    stats = wsn.compute_statistics(stabilization=100,
                                   battery=BatteryProfile('coin', 240.0, 1263.0))

    assert stats.window_h == pytest.approx(300 / 360000)
    assert stats.min_usage_mAh <= stats.avg_usage_mAh <= stats.max_usage_mAh
    assert stats.max_draw_mA > 0
    assert stats.first_death_h <= stats.last_death_h
    assert stats.first_death.total_hours == int(stats.first_death_h)
    assert stats.last_death.total_hours == int(stats.last_death_h)

    for rate in (stats.corruption_rate, stats.symmetric_rate, stats.ch_rate):
        if rate is not None:
            assert 0.0 <= rate <= 1.0
    assert 0.0 <= stats.avg_duty_cycle <= 1.0


def test_reporting_tables():
    wsn = build_network(n_devices=4, area_width=20, area_height=20, seed=2,
                        interval=20, stabilization=40)
    wsn.env.run(100)
    table = wsn.device_table(stabilization=40)
    assert list(table.index) == [0, 1, 2, 3]
    assert {'x', 'y', 'is_ch', 'ch', 'neighbors', 'duty_cycle', 'usage_mAh'} <= set(table.columns)
    assert (table['usage_mAh'] > 0).all()

    series = wsn.compute_statistics(stabilization=40).as_series()
    assert 'ch_subscribers' not in series.index
    assert series['device_count'] == 4


def test_network_kwargs_reach_the_medium():
    wsn = build_network(n_devices=2, seed=1, network_kwargs={'radio_range': 12.5})
    assert isinstance(wsn, MeshWSN)
    assert wsn.radio_range == 12.5
