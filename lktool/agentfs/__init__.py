"""Preparing and packaging hosted agent projects."""