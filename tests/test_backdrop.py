from winter_arcade.backdrop import Backdrop
from winter_arcade.games.base import Trail


def test_same_seed_same_particles():
    a = Backdrop(900, 600, seed=7)
    b = Backdrop(900, 600, seed=7)
    assert a.particles == b.particles
    assert len(a.particles) == 36


def test_particles_wrap_horizontally():
    backdrop = Backdrop(900, 600, count=1)
    p = backdrop.particles[0]
    p.x = 909.0
    p.vx = 120.0
    backdrop.update(0.1)
    assert p.x == -10


def test_draw_uses_scaled_coordinates(fake_px):
    backdrop = Backdrop(900, 600, count=3)
    backdrop.draw(fake_px, 1 / 3)
    assert fake_px.calls == ["circ", "circ", "circ"]


def test_trail_keeps_latest_points():
    trail = Trail(3)
    for i in range(5):
        trail.push(float(i), 0.0)
    assert len(trail) == 3
    assert trail.as_tuple() == ((2.0, 0.0), (3.0, 0.0), (4.0, 0.0))
    trail.clear()
    assert list(trail) == []
