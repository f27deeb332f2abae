"""
Tests for calibration design package.

Test modules:
- test_validation: Design matrix validation and error hierarchy
- test_metrics: Dmax, minimum distance and maximum correlation
- test_criteria: Continuation criteria and combinators
- test_transforms: Quantization, mapping and normalization
- test_optimizer: Random shift optimizer and configuration
- test_design_generation: End-to-end design generation and quality report
"""
