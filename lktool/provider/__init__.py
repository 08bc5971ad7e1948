"""Video clip specifications and the catalogue that rotates through them."""