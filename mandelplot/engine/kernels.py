# kernels.py

from numba import njit, prange

# Blue ramp for escaped points: 128 + n, saturating at 255.
BLUE_BASE = 128
CHANNEL_MAX = 255


@njit
def iterate_mandelbrot(real_start, imag_start, max_iterations, divergence_bound):
    """
    Escape-time test for c = real_start + imag_start*i, starting from z = 0.

    Returns the step n at which |z|^2 first exceeds `divergence_bound`,
    or `max_iterations` if it never does within the cap.
    """
    real = 0.0
    imag = 0.0
    for n in range(max_iterations):
        new_real = real * real - imag * imag + real_start
        imag = 2.0 * real * imag + imag_start
        real = new_real
        if real * real + imag * imag > divergence_bound:
            return n
    return max_iterations


@njit
def encode_pixel(iterations, max_iterations):
    """
    Map an iteration count to an (R, G, B, A) cell.
    Points that never escaped are opaque black.
    """
    if iterations < max_iterations:
        blue = min(BLUE_BASE + iterations, CHANNEL_MAX)
        return (0, 0, blue, CHANNEL_MAX)
    return (0, 0, 0, CHANNEL_MAX)


@njit
def _fill_row(pixels, row, imag_start, min_real, real_step, max_iterations, divergence_bound):
    for col in range(pixels.shape[1]):
        real_start = min_real + real_step * col
        n = iterate_mandelbrot(real_start, imag_start, max_iterations, divergence_bound)
        r, g, b, a = encode_pixel(n, max_iterations)
        pixels[row, col, 0] = r
        pixels[row, col, 1] = g
        pixels[row, col, 2] = b
        pixels[row, col, 3] = a


@njit
def fill_pixels(pixels, min_real, real_range, min_imag, imag_range, max_iterations, divergence_bound):
    """
    Overwrite every cell of `pixels` (uint8, shape (height, width, 4)).

    Row 0 is the top edge (min_imag + imag_range); imaginary values decrease
    going down. Column 0 is the left edge (min_real).
    """
    height = pixels.shape[0]
    width = pixels.shape[1]
    real_step = real_range / width
    imag_step = imag_range / height
    top_imag = min_imag + imag_range

    for row in range(height):
        imag_start = top_imag - imag_step * row
        _fill_row(pixels, row, imag_start, min_real, real_step, max_iterations, divergence_bound)


@njit(parallel=True)
def fill_pixels_parallel(pixels, min_real, real_range, min_imag, imag_range, max_iterations, divergence_bound):
    """Same as `fill_pixels`, with rows spread over numba worker threads."""
    height = pixels.shape[0]
    width = pixels.shape[1]
    real_step = real_range / width
    imag_step = imag_range / height
    top_imag = min_imag + imag_range

    for row in prange(height):
        imag_start = top_imag - imag_step * row
        _fill_row(pixels, row, imag_start, min_real, real_step, max_iterations, divergence_bound)
