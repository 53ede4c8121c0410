"""
ppg/spectral.py — FFT / IFFT and analytic signal
=================================================
The single spectral kernel used by every filter and amplitude estimator in
the project.

FFT
---
Iterative radix-2 Cooley–Tukey:

    1. Permute the input into bit-reversed order.
    2. For block sizes 2, 4, …, N combine each block's even half E and odd
       half O with the twiddle factors  W_k = exp(−2πik / size):

           X[k]          = E[k] + W_k · O[k]
           X[k + size/2] = E[k] − W_k · O[k]

Each butterfly stage is vectorised over all blocks with numpy, so one
stage costs a handful of array operations rather than a Python loop per
element.

The input length MUST be a power of two.  Callers zero-pad with
`next_power_of_two()`; a wrong length is a programming error and raises.

IFFT
----
    ifft(X) = conj( fft( conj(X) ) ) / N

Analytic signal (discrete Hilbert transform)
--------------------------------------------
    1. Zero-pad to the next power of two ≥ 2 × length (padding to twice the
       length keeps the circular wrap-around away from the samples we keep).
    2. FFT.
    3. Double bins 1 … N/2−1 (positive frequencies), zero bins
       N/2+1 … N−1 (negative frequencies), leave DC and Nyquist untouched.
    4. IFFT and truncate to the original length.

|analytic(x)[n]| is the instantaneous amplitude (envelope) of x at n.
"""

import numpy as np
from utils.logger import get_logger

logger = get_logger("ppg.spectral")

# Below this length the transform is degenerate; the identity is returned.
ANALYTIC_MIN_LENGTH = 4


def next_power_of_two(n: int) -> int:
    """Smallest power of two ≥ n (1 for n ≤ 1)."""
    if n <= 1:
        return 1
    return 1 << (int(n) - 1).bit_length()


def as_finite_array(values) -> np.ndarray:
    """
    Convert any numeric sequence to a 1-D float64 array, replacing NaN and
    ±inf with 0 so the transforms below never propagate non-finite values.
    """
    arr = np.asarray(values, dtype=np.float64).ravel()
    if arr.size and not np.all(np.isfinite(arr)):
        bad = int(np.count_nonzero(~np.isfinite(arr)))
        logger.warning("Replacing %d non-finite sample(s) with 0.", bad)
        arr = np.where(np.isfinite(arr), arr, 0.0)
    return arr


def _bit_reversed_indices(n: int) -> np.ndarray:
    bits = n.bit_length() - 1
    idx = np.arange(n)
    rev = np.zeros(n, dtype=np.intp)
    for b in range(bits):
        rev |= ((idx >> b) & 1) << (bits - 1 - b)
    return rev


def fft(real, imag) -> tuple[np.ndarray, np.ndarray]:
    """
    Forward discrete Fourier transform.

    Parameters
    ----------
    real, imag : array-like, shape (N,)   N must be a power of two.

    Returns
    -------
    real, imag : ndarray, shape (N,)

    Raises
    ------
    ValueError
        If the two parts differ in length or N is not a power of two.
    """
    re = np.array(real, dtype=np.float64).ravel()
    im = np.array(imag, dtype=np.float64).ravel()
    n = re.size

    if im.size != n:
        raise ValueError(f"real/imag length mismatch: {n} vs {im.size}.")
    if n == 0 or n & (n - 1):
        raise ValueError(f"FFT length must be a power of two, got {n}.")
    if n == 1:
        return re, im

    order = _bit_reversed_indices(n)
    re = re[order]
    im = im[order]

    size = 2
    while size <= n:
        half = size // 2
        angle = -2.0 * np.pi * np.arange(half) / size
        w_re = np.cos(angle)
        w_im = np.sin(angle)

        blocks_re = re.reshape(-1, size)
        blocks_im = im.reshape(-1, size)
        even_re, odd_re = blocks_re[:, :half], blocks_re[:, half:]
        even_im, odd_im = blocks_im[:, :half], blocks_im[:, half:]

        # Twiddle × odd half (complex multiply)
        t_re = w_re * odd_re - w_im * odd_im
        t_im = w_re * odd_im + w_im * odd_re

        re = np.concatenate([even_re + t_re, even_re - t_re], axis=1).ravel()
        im = np.concatenate([even_im + t_im, even_im - t_im], axis=1).ravel()
        size *= 2

    return re, im


def ifft(real, imag) -> tuple[np.ndarray, np.ndarray]:
    """Inverse transform: conjugate, forward FFT, conjugate, divide by N."""
    re = np.asarray(real, dtype=np.float64)
    im = np.asarray(imag, dtype=np.float64)
    out_re, out_im = fft(re, -im)
    n = out_re.size
    return out_re / n, -out_im / n


def analytic_signal(signal) -> np.ndarray:
    """
    Discrete analytic signal of a real sequence.

    Returns
    -------
    ndarray of complex128, same length as `signal`.  Real part ≈ signal,
    imaginary part ≈ its Hilbert transform.  Inputs shorter than 4 samples
    are returned unchanged as complex values with zero imaginary part.
    An all-zero input yields all zeros; callers must floor magnitudes
    before dividing by them.
    """
    x = as_finite_array(signal)
    n = x.size
    if n < ANALYTIC_MIN_LENGTH:
        return x.astype(np.complex128)

    size = next_power_of_two(2 * n)
    padded = np.zeros(size)
    padded[:n] = x

    re, im = fft(padded, np.zeros(size))

    # One-sided spectrum: DC and Nyquist ×1, positive ×2, negative ×0
    h = np.zeros(size)
    h[0] = 1.0
    h[1:size // 2] = 2.0
    h[size // 2] = 1.0

    re, im = ifft(re * h, im * h)
    return (re + 1j * im)[:n]


def instantaneous_amplitude(signal) -> np.ndarray:
    """Magnitude of the analytic signal (the amplitude envelope)."""
    return np.abs(analytic_signal(signal))


def power_spectrum(signal, n_fft: int | None = None) -> np.ndarray:
    """
    |FFT|² of a real signal zero-padded to `n_fft` (next power of two ≥ len
    when omitted).  Only the first n_fft // 2 + 1 (non-negative) bins are
    returned.
    """
    x = as_finite_array(signal)
    size = next_power_of_two(max(n_fft or 0, x.size, 1))
    padded = np.zeros(size)
    padded[:x.size] = x
    re, im = fft(padded, np.zeros(size))
    return (re ** 2 + im ** 2)[: size // 2 + 1]
