import numpy as np
import pytest

from mandelplot.engine.kernels import encode_pixel, iterate_mandelbrot
from mandelplot.engine.plot import MAX_BUFFER_BYTES, Plot
from mandelplot.errors import CapacityExceeded, InvalidArgument, PlotError

FULL_VIEW = dict(min_real=-2.0, real_range=3.0, min_imag=-1.5, imag_range=3.0)


def make_plot(width=24, height=18, max_iterations=60, divergence_bound=4.0, **kw):
    region = dict(FULL_VIEW, **kw)
    return Plot(width, height, region["min_real"], region["real_range"],
                region["min_imag"], region["imag_range"], max_iterations, divergence_bound)


def test_two_by_two_scenario():
    plot = Plot(2, 2, -2.0, 3.0, -1.5, 3.0, 50, 4.0)
    plot.calc_pixels()
    raw = plot.pixels()
    assert plot.byte_length == 16
    assert len(raw) == 16
    assert all(raw[i] == 255 for i in range(3, 16, 4))


def test_new_matches_constructor():
    plot = Plot.new(3, 2, -2.0, 3.0, -1.5, 3.0, 10, 4.0)
    assert (plot.pixel_width, plot.pixel_height) == (3, 2)
    assert plot.max_real == pytest.approx(1.0)
    assert plot.max_imag == pytest.approx(1.5)


def test_buffer_is_zeroed_before_compute():
    plot = make_plot()
    assert not plot.as_array().any()


@pytest.mark.parametrize("args", [
    (0, 2, -2.0, 3.0, -1.5, 3.0, 50, 4.0),
    (2, 0, -2.0, 3.0, -1.5, 3.0, 50, 4.0),
    (2, 2, -2.0, 0.0, -1.5, 3.0, 50, 4.0),
    (2, 2, -2.0, 3.0, -1.5, 0.0, 50, 4.0),
    (2, 2, -2.0, -3.0, -1.5, 3.0, 50, 4.0),
    (2, 2, -2.0, 3.0, -1.5, 3.0, 0, 4.0),
    (2, 2, -2.0, 3.0, -1.5, 3.0, 50, 0.0),
    (2, 2, -2.0, 3.0, -1.5, 3.0, 50, -4.0),
    (2, 2, float("nan"), 3.0, -1.5, 3.0, 50, 4.0),
    (2, 2, -2.0, float("inf"), -1.5, 3.0, 50, 4.0),
    (2.5, 2, -2.0, 3.0, -1.5, 3.0, 50, 4.0),
    (True, 2, -2.0, 3.0, -1.5, 3.0, 50, 4.0),
    (2, 2, "-2", 3.0, -1.5, 3.0, 50, 4.0),
])
def test_construction_rejects_bad_arguments(args):
    with pytest.raises(InvalidArgument):
        Plot(*args)


def test_invalid_argument_is_a_value_error():
    with pytest.raises(ValueError):
        Plot(0, 1, -2.0, 3.0, -1.5, 3.0, 50, 4.0)


def test_oversized_buffer_is_rejected():
    with pytest.raises(CapacityExceeded):
        Plot(70000, 70000, -2.0, 3.0, -1.5, 3.0, 50, 4.0)
    with pytest.raises(PlotError):
        Plot(32768, 32768, -2.0, 3.0, -1.5, 3.0, 50, 4.0)
    assert 32768 * 32768 * 4 == MAX_BUFFER_BYTES + 1


def test_numpy_integers_are_accepted():
    plot = Plot(np.int64(4), np.uint32(3), np.float64(-2.0), 3, -1.5, 3, np.int32(10), 4)
    plot.calc_pixels()
    assert plot.byte_length == 48


def test_every_cell_is_opaque_and_sized():
    plot = make_plot()
    plot.calc_pixels()
    arr = plot.as_array()
    assert arr.shape == (18, 24, 4)
    assert arr.dtype == np.uint8
    assert plot.byte_length == 24 * 18 * 4
    assert (arr[..., 3] == 255).all()
    assert (arr[..., 0] == 0).all()
    assert (arr[..., 1] == 0).all()


def test_cells_match_iteration_and_encoding():
    plot = make_plot(max_iterations=40)
    plot.calc_pixels()
    arr = plot.as_array()
    seen_inside = seen_outside = False
    for row in range(plot.pixel_height):
        for col in range(plot.pixel_width):
            real, imag = plot.coordinate(row, col)
            n = iterate_mandelbrot(real, imag, plot.max_iterations, plot.divergence_bound)
            assert tuple(arr[row, col]) == encode_pixel(n, plot.max_iterations)
            if n == plot.max_iterations:
                seen_inside = True
                assert tuple(arr[row, col]) == (0, 0, 0, 255)
            else:
                seen_outside = True
                assert arr[row, col, 2] == min(128 + n, 255)
    assert seen_inside and seen_outside


def test_corner_coordinates():
    plot = make_plot(width=30, height=20)
    assert plot.coordinate(0, 0) == (plot.min_real, plot.max_imag)
    real, imag = plot.coordinate(19, 29)
    real_step = plot.real_range / 30
    imag_step = plot.imag_range / 20
    assert plot.max_real - real_step - 1e-12 <= real < plot.max_real
    assert plot.min_imag < imag <= plot.min_imag + imag_step + 1e-12
    with pytest.raises(IndexError):
        plot.coordinate(20, 0)


def test_top_row_is_maximum_imaginary():
    # Only the top half of this region touches the set.
    plot = Plot(8, 8, -0.5, 0.5, -4.0, 4.25, 50, 4.0)
    plot.calc_pixels()
    arr = plot.as_array()
    assert (arr[0, :, 2] == 0).any()
    assert (arr[-1, :, 2] >= 128).all()


def test_compute_is_idempotent():
    plot = make_plot()
    plot.calc_pixels()
    first = plot.pixels().tobytes()
    plot.calc_pixels()
    assert plot.pixels().tobytes() == first


def test_origin_pixel_is_black():
    plot = Plot(4, 4, -2.0, 4.0, -2.0, 4.0, 25, 4.0)
    assert plot.coordinate(2, 2) == (0.0, 0.0)
    plot.calc_pixels()
    assert tuple(plot.as_array()[2, 2]) == (0, 0, 0, 255)


def test_views_are_read_only_and_borrowed():
    plot = make_plot()
    view = plot.pixels()
    arr = plot.as_array()
    assert view.readonly
    with pytest.raises(ValueError):
        arr[0, 0, 0] = 1
    plot.calc_pixels()
    assert view[3] == 255
    assert arr[0, 0, 3] == 255


def test_parallel_rows_match_sequential():
    seq = make_plot(width=33, height=21)
    par = Plot(33, 21, -2.0, 3.0, -1.5, 3.0, 60, 4.0, parallel=True)
    seq.calc_pixels()
    par.calc_pixels()
    assert par.pixels().tobytes() == seq.pixels().tobytes()
