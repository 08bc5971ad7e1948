"""Probe samples, statistics and subscription layouts for load tests."""