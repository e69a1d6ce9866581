"""
Delta-Sigma ADC Decimation Filter Designer
==========================================

This package designs, simulates and evaluates multistage decimation
filter chains for 1-bit delta-sigma ADC bitstreams.

Given a fixed modulator sampling rate and a desired output rate, it:
1. Factors the oversampling ratio into CIC x 2^N halfband x FIR stages
2. Designs each stage with explicit fixed-point formats
3. Runs the bitstream through the cascade with bit-true arithmetic
4. Measures SNDR, ENOB, SFDR and noise floor on the decimated output

Package Structure:
- signals/: Bitstream preparation, loading and test signal generation
- planning/: Decimation ratio factorization
- filters/: Fixed-point formats, filter design and the stage chain
- processing/: Multirate fixed-point processing of a bitstream
- metrics/: Spectral performance analysis (SNDR, ENOB, SFDR)
- simulation/: Sweep orchestration over several output rates
- visualization/: Trade-off and spectrum plots
"""

__version__ = "1.0.0"
